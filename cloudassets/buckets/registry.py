"""Maps logical asset folders onto configured buckets."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from cloudassets.buckets.base import Bucket, ConfigError, FileRef, filename_of
from cloudassets.buckets.s3_bucket import S3Bucket
from cloudassets.common.config import Settings

logger = logging.getLogger("storage")

BucketFactory = Callable[..., Bucket]

TYPE_KEY = "Type"
DEFAULT_TYPE = "s3"

_BACKENDS: dict[str, BucketFactory] = {
    "s3": S3Bucket,
    "s3bucket": S3Bucket,
}


def register_backend(name: str, factory: BucketFactory) -> None:
    _BACKENDS[name.strip().lower()] = factory


def create_bucket(
    path: str,
    config: Mapping[str, Any],
    *,
    settings: Settings | None = None,
) -> Bucket:
    """Build the bucket for ``path`` from the backend named by ``Type``."""
    backend = str(config.get(TYPE_KEY) or DEFAULT_TYPE).strip().lower()
    factory = _BACKENDS.get(backend)
    if factory is None:
        raise ConfigError(
            f"Unsupported bucket type: {backend}. "
            f"Supported types: {', '.join(sorted(_BACKENDS))}",
            key=TYPE_KEY,
        )
    return factory(path, config, settings=settings)


class BucketRegistry:
    """Resolves the bucket responsible for a file by its folder.

    Buckets are created on first use and reused afterwards. When folders
    nest, the longest matching folder wins.
    """

    def __init__(
        self,
        mapping: Mapping[str, Mapping[str, Any]],
        *,
        settings: Settings | None = None,
    ) -> None:
        self._configs = {path.strip("/"): dict(cfg) for path, cfg in mapping.items()}
        self._settings = settings
        self._buckets: dict[str, Bucket] = {}

    @property
    def paths(self) -> list[str]:
        return sorted(self._configs)

    def get(self, path: str) -> Bucket:
        path = path.strip("/")
        if path not in self._configs:
            raise KeyError(path)
        bucket = self._buckets.get(path)
        if bucket is None:
            bucket = create_bucket(path, self._configs[path], settings=self._settings)
            self._buckets[path] = bucket
            logger.info("bucket_created path=%s bucket=%r", path, bucket)
        return bucket

    def bucket_for(self, file: FileRef) -> Bucket | None:
        name = filename_of(file).strip("/")
        matches = [
            path
            for path in self._configs
            if not path or name == path or name.startswith(path + "/")
        ]
        if not matches:
            return None
        return self.get(max(matches, key=len))
