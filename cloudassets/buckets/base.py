"""Bucket contract shared by every storage backend.

Backends implement :class:`Bucket` independently and compose the helpers in
this module (key derivation, public links, lookup results) instead of
inheriting them.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, BinaryIO, Mapping, Protocol, Union, runtime_checkable

from cloudassets.domain.files import StoredFile
from cloudassets.infra.storage.client import ObjectHead, StorageError

# Returned by size lookups when the object cannot be fetched.
NOT_FOUND = -1

FileRef = Union[StoredFile, str]


class BucketError(Exception):
    """Base class for bucket level exceptions."""


class ConfigError(BucketError, ValueError):
    """Raised when a bucket configuration key is missing or invalid."""

    def __init__(self, message: str, *, key: str) -> None:
        super().__init__(message)
        self.key = key


class UploadError(BucketError):
    """Raised when a local file cannot be stored in the bucket."""

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class LookupStatus(enum.Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ObjectLookup:
    """Outcome of looking an object up without raising."""

    status: LookupStatus
    head: ObjectHead | None = None
    error: StorageError | None = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND


def filename_of(file: FileRef) -> str:
    return file if isinstance(file, str) else file.filename


def relative_key(file: FileRef, root: str = "") -> str:
    """Derive the object key for a file from its logical filename.

    The bucket root is stripped when the filename lies beneath it, then
    surrounding slashes are trimmed. Depends only on its arguments.
    """
    name = filename_of(file).strip("/")
    prefix = root.strip("/")
    if prefix and (name == prefix or name.startswith(prefix + "/")):
        name = name[len(prefix):]
    return name.strip("/")


def join_link(base: str, key: str) -> str:
    return f"{base.rstrip('/')}/{key.lstrip('/')}"


def config_flag(config: Mapping[str, Any], key: str) -> bool:
    """Read a boolean option that may arrive as a string from env files."""
    value = config.get(key)
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "t", "yes", "y", "on"}
    return bool(value)


@runtime_checkable
class Bucket(Protocol):
    """Operations every storage backend exposes to the asset layer."""

    path: str

    def put(self, file: StoredFile) -> None: ...

    def delete(self, file: FileRef) -> None: ...

    def rename(self, file: StoredFile, before_name: str, after_name: str) -> None: ...

    def get_contents(self, file: FileRef) -> BinaryIO: ...

    def get_temporary_link_for(self, file: FileRef, expires: int = 3600) -> str: ...

    def check_exists(self, file: FileRef) -> bool: ...

    def get_file_size(self, file: FileRef) -> int: ...

    def get_link_for(self, file: FileRef, secure: bool = False) -> str: ...
