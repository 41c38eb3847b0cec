"""Mock storage client for testing bucket operations."""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Sequence

from cloudassets.infra.storage.client import (
    CompletedPart,
    MultipartUpload,
    ObjectHead,
    ObjectNotFoundError,
    StorageError,
    StoredObject,
)

CONTAINER = "test-container"


@dataclass
class MockStorageClient:
    """In-memory mock of StorageClient for testing.

    ``fail_on`` maps a method name to the exception it should raise;
    ``fail_on_part`` makes a single part number fail during upload_part.
    """

    objects: dict[str, dict[str, Any]] = field(default_factory=dict)
    uploads: dict[str, dict[str, Any]] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    fail_on: dict[str, Exception] = field(default_factory=dict)
    fail_on_part: int | None = None
    _upload_counter: int = field(default=0)

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise self.fail_on[name]

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: BinaryIO | bytes,
        content_type: str | None = None,
        content_disposition: str | None = None,
    ) -> None:
        self._record("put_object")
        data = body if isinstance(body, bytes) else body.read()
        self.objects[f"{bucket}/{object_key}"] = {
            "data": data,
            "content_type": content_type,
            "content_disposition": content_disposition,
        }

    def init_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        content_type: str | None = None,
        content_disposition: str | None = None,
    ) -> MultipartUpload:
        self._record("init_multipart_upload")
        self._upload_counter += 1
        upload_id = f"mock-upload-{self._upload_counter}"
        self.uploads[upload_id] = {
            "bucket": bucket,
            "object_key": object_key,
            "content_type": content_type,
            "content_disposition": content_disposition,
            "parts": {},
            "completed": False,
            "aborted": False,
        }
        return MultipartUpload(upload_id=upload_id, bucket=bucket, object_key=object_key)

    def upload_part(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        part_number: int,
        body: bytes,
    ) -> CompletedPart:
        self._record("upload_part")
        if self.fail_on_part == part_number:
            raise StorageError(f"Failed to upload part {part_number}: connection reset")
        self.uploads[upload_id]["parts"][part_number] = body
        return CompletedPart(part_number=part_number, etag=f"etag-{part_number}")

    def complete_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> None:
        self._record("complete_multipart_upload")
        upload = self.uploads[upload_id]
        upload["completed"] = True
        data = b"".join(
            upload["parts"][part.part_number]
            for part in sorted(parts, key=lambda p: p.part_number)
        )
        self.objects[f"{bucket}/{object_key}"] = {
            "data": data,
            "content_type": upload["content_type"],
            "content_disposition": upload["content_disposition"],
        }

    def abort_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
    ) -> None:
        self._record("abort_multipart_upload")
        if upload_id in self.uploads:
            self.uploads[upload_id]["aborted"] = True

    def _lookup(self, bucket: str, object_key: str) -> dict[str, Any]:
        key = f"{bucket}/{object_key}"
        if key not in self.objects:
            raise ObjectNotFoundError(f"Object not found in bucket {bucket!r}: {object_key!r}")
        return self.objects[key]

    def get_object(self, *, bucket: str, object_key: str) -> StoredObject:
        self._record("get_object")
        obj = self._lookup(bucket, object_key)
        return StoredObject(
            body=io.BytesIO(obj["data"]),
            size_bytes=len(obj["data"]),
            etag="mock-etag",
            content_type=obj["content_type"],
        )

    def head_object(self, *, bucket: str, object_key: str) -> ObjectHead:
        self._record("head_object")
        obj = self._lookup(bucket, object_key)
        return ObjectHead(
            size_bytes=len(obj["data"]),
            etag="mock-etag",
            content_type=obj["content_type"],
        )

    def object_exists(self, *, bucket: str, object_key: str) -> bool:
        self._record("object_exists")
        return f"{bucket}/{object_key}" in self.objects

    def copy_object(
        self,
        *,
        bucket: str,
        source_key: str,
        object_key: str,
    ) -> dict[str, str | None]:
        self._record("copy_object")
        obj = self._lookup(bucket, source_key)
        self.objects[f"{bucket}/{object_key}"] = dict(obj)
        return {"etag": "mock-etag", "version_id": None}

    def delete_object(self, *, bucket: str, object_key: str) -> None:
        self._record("delete_object")
        self.objects.pop(f"{bucket}/{object_key}", None)

    def presign_download(
        self,
        *,
        bucket: str,
        object_key: str,
        expires_in: int = 3600,
        filename: str | None = None,
    ) -> str:
        self._record("presign_download")
        url = f"https://mock-s3/{bucket}/{object_key}?expires={expires_in}"
        if filename:
            url += f"&filename={filename}"
        return url

    def add_object(self, bucket: str, object_key: str, data: bytes) -> None:
        """Test helper to seed an object without recording a call."""
        self.objects[f"{bucket}/{object_key}"] = {
            "data": data,
            "content_type": None,
            "content_disposition": None,
        }
