"""Storage client protocol and data types.

This module defines the abstract interface buckets use to talk to object
storage: single and multipart uploads, reads, existence checks, server-side
copies, deletes and presigned download URLs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Protocol, Sequence


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""


class ObjectNotFoundError(StorageError):
    """Raised when the addressed object does not exist."""


@dataclass(frozen=True, slots=True)
class CompletedPart:
    """Represents a completed part in a multipart upload."""

    part_number: int
    etag: str


@dataclass(frozen=True, slots=True)
class MultipartUpload:
    """Result of initiating a multipart upload."""

    upload_id: str
    bucket: str
    object_key: str


@dataclass(frozen=True, slots=True)
class ObjectHead:
    """Metadata from a HEAD object request."""

    size_bytes: int
    etag: str | None
    content_type: str | None


@dataclass(frozen=True, slots=True)
class StoredObject:
    """Body and metadata from a GET object request."""

    body: BinaryIO
    size_bytes: int
    etag: str | None
    content_type: str | None


class StorageClient(Protocol):
    """Protocol defining the interface for object storage backends.

    Implementations must provide all methods defined here.
    Currently supports S3-compatible storage services.
    """

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: BinaryIO | bytes,
        content_type: str | None = None,
        content_disposition: str | None = None,
    ) -> None:
        """Upload an object in a single request.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def init_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        content_type: str | None = None,
        content_disposition: str | None = None,
    ) -> MultipartUpload:
        """Initialize a multipart upload session.

        Args:
            bucket: Target bucket name.
            object_key: Object key (path) in the bucket.
            content_type: MIME type of the object.
            content_disposition: Content-Disposition header stored with the object.

        Returns:
            MultipartUpload containing the upload_id for subsequent operations.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def upload_part(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        part_number: int,
        body: bytes,
    ) -> CompletedPart:
        """Upload a single part of a multipart upload.

        Args:
            bucket: Target bucket name.
            object_key: Object key (path) in the bucket.
            upload_id: Multipart upload ID from init_multipart_upload.
            part_number: Part number (1-based, max 10000).
            body: Raw part content.

        Returns:
            CompletedPart carrying the ETag reported by the store.

        Raises:
            StorageError: If the part could not be stored.
        """
        ...

    def complete_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> None:
        """Complete a multipart upload by combining all parts.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def abort_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
    ) -> None:
        """Abort a multipart upload and clean up uploaded parts.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def get_object(self, *, bucket: str, object_key: str) -> StoredObject:
        """Fetch an object body together with its metadata.

        Raises:
            ObjectNotFoundError: If the object doesn't exist.
            StorageError: If the operation fails.
        """
        ...

    def head_object(self, *, bucket: str, object_key: str) -> ObjectHead:
        """Get object metadata without downloading the content.

        Raises:
            ObjectNotFoundError: If the object doesn't exist.
            StorageError: If the operation fails.
        """
        ...

    def object_exists(self, *, bucket: str, object_key: str) -> bool:
        """Check whether an object exists without fetching its body.

        Raises:
            StorageError: If the check itself fails.
        """
        ...

    def copy_object(
        self,
        *,
        bucket: str,
        source_key: str,
        object_key: str,
    ) -> dict[str, str | None]:
        """Server-side copy of ``source_key`` to ``object_key`` within a bucket.

        The source is addressed as ``bucket/key`` and percent-encoded on the
        wire, as the copy request header requires.

        Returns:
            Copy result with the new ``etag``; truthy on success.

        Raises:
            ObjectNotFoundError: If the source doesn't exist.
            StorageError: If the operation fails.
        """
        ...

    def delete_object(self, *, bucket: str, object_key: str) -> None:
        """Delete an object from storage.

        Deleting a missing key is not an error.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def presign_download(
        self,
        *,
        bucket: str,
        object_key: str,
        expires_in: int,
        filename: str | None = None,
    ) -> str:
        """Generate a presigned URL for downloading an object.

        Args:
            bucket: Target bucket name.
            object_key: Object key (path) in the bucket.
            expires_in: URL expiration time in seconds.
            filename: Optional filename for Content-Disposition header.

        Returns:
            Presigned URL for GET request.

        Raises:
            StorageError: If URL generation fails.
        """
        ...
