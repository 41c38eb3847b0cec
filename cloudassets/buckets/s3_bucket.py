"""Bucket backed by Amazon S3 or an S3-compatible service.

Object keys are derived from a file's logical filename relative to the
bucket path. Uploads above the configured part size use the multipart
protocol; rename is a server-side copy followed by a delete of the source
and is not atomic.
"""

from __future__ import annotations

import logging
import math
import mimetypes
import os
from pathlib import PurePosixPath
from typing import Any, BinaryIO, Mapping

from cloudassets.buckets.base import (
    NOT_FOUND,
    ConfigError,
    FileRef,
    LookupStatus,
    ObjectLookup,
    UploadError,
    config_flag,
    join_link,
    relative_key,
)
from cloudassets.common.config import MIN_PART_SIZE_BYTES, Settings, get_settings
from cloudassets.domain.files import StoredFile
from cloudassets.infra.observability.metrics import track_operation
from cloudassets.infra.storage.client import (
    CompletedPart,
    MultipartUpload,
    ObjectNotFoundError,
    StorageClient,
    StorageError,
)
from cloudassets.infra.storage.s3_client import S3StorageClient

logger = logging.getLogger("storage")

# Maximum part number allowed by S3
MAX_PART_NUMBER = 10000


class S3Bucket:
    """Bucket driver for Amazon S3."""

    CONTAINER = "Container"
    REGION = "Region"
    API_KEY = "ApiKey"
    API_SECRET = "ApiSecret"
    FORCE_DL = "ForceDownload"
    USE_ROLE = "UseRole"
    ENDPOINT = "Endpoint"
    ADDRESSING_STYLE = "AddressingStyle"
    PART_SIZE = "PartSize"
    BASE_URL = "BaseURL"
    SECURE_URL = "SecureURL"

    def __init__(
        self,
        path: str,
        config: Mapping[str, Any] | None = None,
        *,
        storage_client: StorageClient | None = None,
        settings: Settings | None = None,
    ) -> None:
        cfg = dict(config or {})
        self.path = path.strip("/")
        self.config = cfg
        self._settings = settings or get_settings()

        self._require(cfg, self.CONTAINER)
        self._require(cfg, self.REGION)
        self._use_role = config_flag(cfg, self.USE_ROLE)
        if not self._use_role:
            self._require(cfg, self.API_KEY)
            self._require(cfg, self.API_SECRET)

        self.container_name = str(cfg[self.CONTAINER]).strip()
        self._force_download = config_flag(cfg, self.FORCE_DL)
        self._part_size = self._resolve_part_size(cfg)
        self._client = storage_client or self._build_storage_client(cfg)

    @staticmethod
    def _require(cfg: Mapping[str, Any], key: str) -> None:
        value = cfg.get(key)
        if not value or (isinstance(value, str) and not value.strip()):
            raise ConfigError(f"S3Bucket: missing configuration key - {key}", key=key)

    def _resolve_part_size(self, cfg: Mapping[str, Any]) -> int:
        raw = cfg.get(self.PART_SIZE)
        if raw is None:
            raw = self._settings.STORAGE_PART_SIZE_BYTES
        try:
            part_size = int(raw)
        except (TypeError, ValueError) as exc:
            raise ConfigError(
                f"S3Bucket: invalid configuration key - {self.PART_SIZE}",
                key=self.PART_SIZE,
            ) from exc
        if part_size < MIN_PART_SIZE_BYTES:
            raise ConfigError(
                f"S3Bucket: {self.PART_SIZE} must be at least {MIN_PART_SIZE_BYTES} bytes",
                key=self.PART_SIZE,
            )
        return part_size

    def _build_storage_client(self, cfg: Mapping[str, Any]) -> StorageClient:
        # With UseRole the ambient credential chain supplies the identity.
        return S3StorageClient(
            region=str(cfg[self.REGION]).strip(),
            access_key_id=None if self._use_role else cfg.get(self.API_KEY),
            secret_access_key=None if self._use_role else cfg.get(self.API_SECRET),
            endpoint_url=cfg.get(self.ENDPOINT),
            addressing_style=cfg.get(self.ADDRESSING_STYLE),
            settings=self._settings,
        )

    @property
    def base_url(self) -> str | None:
        return self.config.get(self.BASE_URL)

    @property
    def secure_url(self) -> str | None:
        return self.config.get(self.SECURE_URL) or self.base_url

    def get_relative_link_for(self, file: FileRef) -> str:
        return relative_key(file, self.path)

    def get_link_for(self, file: FileRef, secure: bool = False) -> str:
        """Public URL of a file, built from ``BaseURL`` or ``SecureURL``."""
        base = self.secure_url if secure else self.base_url
        if not base:
            key = self.SECURE_URL if secure else self.BASE_URL
            raise ConfigError(f"S3Bucket: missing configuration key - {key}", key=key)
        return join_link(base, self.get_relative_link_for(file))

    def put(self, file: StoredFile) -> None:
        """Upload the local content of ``file``.

        Raises:
            UploadError: If the local file cannot be opened or the store
                rejects the upload. The failure is logged first.
        """
        key = self.get_relative_link_for(file)
        with track_operation("put"):
            try:
                handle = open(file.full_path, "rb")
            except OSError as exc:
                raise self._upload_failed(
                    f"Unable to open file: {file.filename}", key, exc
                ) from exc

            with handle:
                size = os.fstat(handle.fileno()).st_size
                content_type = mimetypes.guess_type(file.filename)[0]
                disposition = self._content_disposition(key)
                if size <= self._part_size:
                    self._put_single(handle, key, content_type, disposition)
                else:
                    self._put_multipart(handle, key, size, content_type, disposition)

            logger.info(
                "put_object container=%s key=%s size=%s",
                self.container_name,
                key,
                size,
            )

    def _content_disposition(self, key: str) -> str | None:
        if not self._force_download:
            return None
        safe_name = PurePosixPath(key).name.replace('"', '\\"')
        return f'attachment; filename="{safe_name}"'

    def _put_single(
        self,
        handle: BinaryIO,
        key: str,
        content_type: str | None,
        disposition: str | None,
    ) -> None:
        try:
            self._client.put_object(
                bucket=self.container_name,
                object_key=key,
                body=handle,
                content_type=content_type,
                content_disposition=disposition,
            )
        except (StorageError, OSError) as exc:
            raise self._upload_failed(
                f"S3Bucket: failed to put file: {exc}", key, exc
            ) from exc

    def _put_multipart(
        self,
        handle: BinaryIO,
        key: str,
        size: int,
        content_type: str | None,
        disposition: str | None,
    ) -> None:
        part_size = max(self._part_size, math.ceil(size / MAX_PART_NUMBER))
        try:
            upload = self._client.init_multipart_upload(
                bucket=self.container_name,
                object_key=key,
                content_type=content_type,
                content_disposition=disposition,
            )
        except StorageError as exc:
            raise self._upload_failed(
                f"S3Bucket: failed to put file: {exc}", key, exc
            ) from exc

        parts: list[CompletedPart] = []
        try:
            part_number = 1
            while chunk := handle.read(part_size):
                parts.append(
                    self._client.upload_part(
                        bucket=self.container_name,
                        object_key=key,
                        upload_id=upload.upload_id,
                        part_number=part_number,
                        body=chunk,
                    )
                )
                part_number += 1
            self._client.complete_multipart_upload(
                bucket=self.container_name,
                object_key=key,
                upload_id=upload.upload_id,
                parts=parts,
            )
        except (StorageError, OSError) as exc:
            self._abort_upload(upload)
            raise self._upload_failed(
                f"S3Bucket: failed to put file: {exc}", key, exc
            ) from exc

    def _abort_upload(self, upload: MultipartUpload) -> None:
        try:
            self._client.abort_multipart_upload(
                bucket=upload.bucket,
                object_key=upload.object_key,
                upload_id=upload.upload_id,
            )
        except StorageError as exc:
            logger.warning(
                "abort_multipart_upload_failed container=%s key=%s upload_id=%s error=%s",
                upload.bucket,
                upload.object_key,
                upload.upload_id,
                exc,
            )

    def _upload_failed(self, message: str, key: str, cause: Exception) -> UploadError:
        # Callers up the stack may swallow UploadError; the log entry must exist regardless.
        logger.error(
            message,
            extra={
                "extra": {
                    "event": "put_failed",
                    "container": self.container_name,
                    "key": key,
                }
            },
        )
        return UploadError(message, cause=cause)

    def delete(self, file: FileRef) -> None:
        """Delete the object for ``file``. Missing objects are not an error."""
        with track_operation("delete"):
            self._delete_key(self.get_relative_link_for(file))

    def _delete_key(self, key: str) -> None:
        try:
            self._client.delete_object(bucket=self.container_name, object_key=key)
        except StorageError as exc:
            logger.warning(
                "delete_object_failed container=%s key=%s error=%s",
                self.container_name,
                key,
                exc,
            )

    def rename(self, file: StoredFile, before_name: str, after_name: str) -> None:
        """Move an object by copying it and then deleting the source.

        ``before_name`` and ``after_name`` are logical filenames relative to
        the site root. A failed copy propagates and leaves the source intact.
        A failure after the copy leaves both objects in place.
        """
        source_key = self.get_relative_link_for(before_name)
        dest_key = self.get_relative_link_for(after_name)
        with track_operation("rename"):
            result = self._client.copy_object(
                bucket=self.container_name,
                source_key=source_key,
                object_key=dest_key,
            )
            if result:
                self._delete_key(source_key)

    def get_contents(self, file: FileRef) -> BinaryIO:
        """Return a readable stream over the stored object.

        Raises:
            ObjectNotFoundError: If no object exists for ``file``.
            StorageError: If the fetch fails.
        """
        with track_operation("get_contents"):
            stored = self._client.get_object(
                bucket=self.container_name,
                object_key=self.get_relative_link_for(file),
            )
        return stored.body

    def get_temporary_link_for(self, file: FileRef, expires: int = 3600) -> str:
        """Presigned GET URL for ``file`` valid for ``expires`` seconds."""
        key = self.get_relative_link_for(file)
        with track_operation("get_temporary_link"):
            lookup = self._get_file_object_for(file)
            if not lookup.found:
                raise lookup.error or ObjectNotFoundError(key)
            filename = PurePosixPath(key).name if self._force_download else None
            return self._client.presign_download(
                bucket=self.container_name,
                object_key=key,
                expires_in=int(expires),
                filename=filename,
            )

    def check_exists(self, file: FileRef) -> bool:
        with track_operation("check_exists"):
            return self._client.object_exists(
                bucket=self.container_name,
                object_key=self.get_relative_link_for(file),
            )

    def get_file_size(self, file: FileRef) -> int:
        """Content length in bytes, or ``NOT_FOUND`` (-1) if it cannot be fetched."""
        with track_operation("get_file_size"):
            lookup = self._get_file_object_for(file)
        if lookup.found and lookup.head is not None:
            return lookup.head.size_bytes
        if lookup.status is LookupStatus.ERROR:
            logger.warning(
                "get_file_size_failed container=%s key=%s error=%s",
                self.container_name,
                self.get_relative_link_for(file),
                lookup.error,
            )
        return NOT_FOUND

    def _get_file_object_for(self, file: FileRef) -> ObjectLookup:
        try:
            head = self._client.head_object(
                bucket=self.container_name,
                object_key=self.get_relative_link_for(file),
            )
        except ObjectNotFoundError as exc:
            return ObjectLookup(status=LookupStatus.NOT_FOUND, error=exc)
        except StorageError as exc:
            return ObjectLookup(status=LookupStatus.ERROR, error=exc)
        return ObjectLookup(status=LookupStatus.FOUND, head=head)

    def __repr__(self) -> str:
        return f"S3Bucket(path={self.path!r}, container={self.container_name!r})"
