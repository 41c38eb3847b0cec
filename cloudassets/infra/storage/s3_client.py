"""S3-compatible storage client implementation.

This module provides an S3-compatible storage client that works with
AWS S3, MinIO, and other S3-compatible object storage services.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, BinaryIO, Sequence

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from cloudassets.infra.storage.client import (
    CompletedPart,
    MultipartUpload,
    ObjectHead,
    ObjectNotFoundError,
    StorageError,
    StoredObject,
)

if TYPE_CHECKING:
    from cloudassets.common.config import Settings

S3_API_VERSION = "2006-03-01"

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def _is_not_found(exc: Exception) -> bool:
    if not isinstance(exc, ClientError):
        return False
    code = exc.response.get("Error", {}).get("Code")
    return str(code) in _NOT_FOUND_CODES


class S3StorageClient:
    """S3-compatible object storage client.

    Supports AWS S3, MinIO, and other S3-compatible services.
    Uses boto3 for all storage operations.
    """

    def __init__(
        self,
        *,
        region: str,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        endpoint_url: str | None = None,
        addressing_style: str | None = None,
        settings: "Settings | None" = None,
    ) -> None:
        """Initialize the S3 client.

        Args:
            region: Region the client is scoped to.
            access_key_id: Explicit access key; ``None`` defers to the
                ambient credential chain (instance role, IRSA, env vars).
            secret_access_key: Explicit secret paired with ``access_key_id``.
            endpoint_url: Endpoint of an S3-compatible service, if not AWS.
            addressing_style: ``path`` or ``virtual`` bucket addressing.
            settings: Application settings providing retry and timeout values.
        """
        self._client = self._build_client(
            region=region,
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            endpoint_url=endpoint_url,
            addressing_style=addressing_style,
            settings=settings,
        )

    @staticmethod
    def _build_client(
        *,
        region: str,
        access_key_id: str | None,
        secret_access_key: str | None,
        endpoint_url: str | None,
        addressing_style: str | None,
        settings: "Settings | None",
    ) -> Any:
        """Create a boto3 S3 client pinned to the 2006-03-01 API."""
        style = (addressing_style or "path").strip().lower()
        config_kwargs: dict[str, Any] = {
            "signature_version": "s3v4",
            "s3": {"addressing_style": style},
        }
        if settings is not None:
            config_kwargs["retries"] = {
                "max_attempts": int(settings.STORAGE_MAX_ATTEMPTS),
                "mode": "standard",
            }
            config_kwargs["connect_timeout"] = settings.STORAGE_CONNECT_TIMEOUT
            config_kwargs["read_timeout"] = settings.STORAGE_READ_TIMEOUT

        client_kwargs: dict[str, Any] = {
            "region_name": region,
            "api_version": S3_API_VERSION,
            "config": Config(**config_kwargs),
        }
        if endpoint_url:
            client_kwargs["endpoint_url"] = endpoint_url
        if access_key_id:
            client_kwargs["aws_access_key_id"] = access_key_id
        if secret_access_key:
            client_kwargs["aws_secret_access_key"] = secret_access_key

        return boto3.client("s3", **client_kwargs)

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: BinaryIO | bytes,
        content_type: str | None = None,
        content_disposition: str | None = None,
    ) -> None:
        """Upload an object in a single request."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": object_key, "Body": body}
        if content_type:
            params["ContentType"] = content_type
        if content_disposition:
            params["ContentDisposition"] = content_disposition

        try:
            self._client.put_object(**params)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to put object: {exc}") from exc

    def init_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        content_type: str | None = None,
        content_disposition: str | None = None,
    ) -> MultipartUpload:
        """Initialize a multipart upload session."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": object_key}
        if content_type:
            params["ContentType"] = content_type
        if content_disposition:
            params["ContentDisposition"] = content_disposition

        try:
            response = self._client.create_multipart_upload(**params)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to create multipart upload: {exc}") from exc

        upload_id = response.get("UploadId")
        if not upload_id:
            raise StorageError("S3 response missing UploadId")

        return MultipartUpload(
            upload_id=str(upload_id),
            bucket=bucket,
            object_key=object_key,
        )

    def upload_part(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        part_number: int,
        body: bytes,
    ) -> CompletedPart:
        """Upload a single part of a multipart upload."""
        try:
            response = self._client.upload_part(
                Bucket=bucket,
                Key=object_key,
                UploadId=upload_id,
                PartNumber=int(part_number),
                Body=body,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(
                f"Failed to upload part {part_number}: {exc}"
            ) from exc

        etag = response.get("ETag")
        if not etag:
            raise StorageError(f"S3 response missing ETag for part {part_number}")

        return CompletedPart(part_number=int(part_number), etag=str(etag))

    def complete_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> None:
        """Complete a multipart upload by combining all parts."""
        multipart_payload = {
            "Parts": [
                {"ETag": part.etag, "PartNumber": int(part.part_number)}
                for part in sorted(parts, key=lambda p: p.part_number)
            ]
        }

        try:
            self._client.complete_multipart_upload(
                Bucket=bucket,
                Key=object_key,
                UploadId=upload_id,
                MultipartUpload=multipart_payload,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to complete multipart upload: {exc}") from exc

    def abort_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
    ) -> None:
        """Abort a multipart upload and clean up uploaded parts."""
        try:
            self._client.abort_multipart_upload(
                Bucket=bucket,
                Key=object_key,
                UploadId=upload_id,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to abort multipart upload: {exc}") from exc

    def get_object(self, *, bucket: str, object_key: str) -> StoredObject:
        """Fetch an object body together with its metadata."""
        try:
            response = self._client.get_object(Bucket=bucket, Key=object_key)
        except (BotoCoreError, ClientError) as exc:
            if _is_not_found(exc):
                raise ObjectNotFoundError(
                    f"Object not found in bucket {bucket!r}: {object_key!r}"
                ) from exc
            raise StorageError(f"Failed to get object: {exc}") from exc

        size = response.get("ContentLength")
        return StoredObject(
            body=response["Body"],
            size_bytes=int(size) if size is not None else 0,
            etag=response.get("ETag"),
            content_type=response.get("ContentType"),
        )

    def head_object(self, *, bucket: str, object_key: str) -> ObjectHead:
        """Get object metadata without downloading the content."""
        try:
            response = self._client.head_object(Bucket=bucket, Key=object_key)
        except (BotoCoreError, ClientError) as exc:
            if _is_not_found(exc):
                raise ObjectNotFoundError(
                    f"Object not found in bucket {bucket!r}: {object_key!r}"
                ) from exc
            raise StorageError(f"Failed to get object metadata: {exc}") from exc

        size = response.get("ContentLength")
        return ObjectHead(
            size_bytes=int(size) if size is not None else 0,
            etag=response.get("ETag"),
            content_type=response.get("ContentType"),
        )

    def object_exists(self, *, bucket: str, object_key: str) -> bool:
        """Check whether an object exists with a HEAD request."""
        try:
            self._client.head_object(Bucket=bucket, Key=object_key)
        except (BotoCoreError, ClientError) as exc:
            if _is_not_found(exc):
                return False
            raise StorageError(f"Failed to check object existence: {exc}") from exc
        return True

    def copy_object(
        self,
        *,
        bucket: str,
        source_key: str,
        object_key: str,
    ) -> dict[str, str | None]:
        """Server-side copy within a bucket.

        botocore percent-encodes a string ``CopySource`` before it is sent,
        so the source is passed in its plain ``bucket/key`` form.
        """
        try:
            response = self._client.copy_object(
                Bucket=bucket,
                CopySource=f"{bucket}/{source_key}",
                Key=object_key,
            )
        except (BotoCoreError, ClientError) as exc:
            if _is_not_found(exc):
                raise ObjectNotFoundError(
                    f"Copy source not found in bucket {bucket!r}: {source_key!r}"
                ) from exc
            raise StorageError(f"Failed to copy object: {exc}") from exc

        result = response.get("CopyObjectResult") or {}
        return {
            "etag": result.get("ETag"),
            "version_id": response.get("VersionId"),
        }

    def delete_object(self, *, bucket: str, object_key: str) -> None:
        """Delete an object from storage."""
        try:
            self._client.delete_object(Bucket=bucket, Key=object_key)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to delete object: {exc}") from exc

    def presign_download(
        self,
        *,
        bucket: str,
        object_key: str,
        expires_in: int,
        filename: str | None = None,
    ) -> str:
        """Generate a presigned URL for downloading an object."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": object_key}
        if filename:
            # Escape quotes in filename for Content-Disposition header
            safe_filename = filename.replace('"', '\\"')
            params["ResponseContentDisposition"] = (
                f'attachment; filename="{safe_filename}"'
            )

        try:
            url = self._client.generate_presigned_url(
                "get_object",
                Params=params,
                ExpiresIn=int(expires_in),
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to generate download URL: {exc}") from exc

        if not url:
            raise StorageError("Generated presigned URL is empty")

        return str(url)
