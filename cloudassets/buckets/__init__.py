from .base import (
    NOT_FOUND,
    Bucket,
    BucketError,
    ConfigError,
    LookupStatus,
    ObjectLookup,
    UploadError,
    relative_key,
)
from .registry import BucketRegistry, create_bucket, register_backend
from .s3_bucket import S3Bucket

__all__ = [
    "NOT_FOUND",
    "Bucket",
    "BucketError",
    "BucketRegistry",
    "ConfigError",
    "LookupStatus",
    "ObjectLookup",
    "S3Bucket",
    "UploadError",
    "create_bucket",
    "register_backend",
    "relative_key",
]
