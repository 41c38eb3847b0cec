from __future__ import annotations

import pytest

from cloudassets.buckets.s3_bucket import S3Bucket
from cloudassets.common.config import MIN_PART_SIZE_BYTES, Settings, get_settings
from tests.buckets.mock_storage import CONTAINER, MockStorageClient


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def settings() -> Settings:
    return Settings(STORAGE_PART_SIZE_BYTES=MIN_PART_SIZE_BYTES)


@pytest.fixture()
def bucket_config() -> dict:
    return {
        "Container": CONTAINER,
        "Region": "us-east-1",
        "ApiKey": "test-key",
        "ApiSecret": "test-secret",
        "BaseURL": "http://cdn.example.com",
        "SecureURL": "https://cdn.example.com",
    }


@pytest.fixture()
def mock_storage() -> MockStorageClient:
    return MockStorageClient()


@pytest.fixture()
def bucket(bucket_config, mock_storage, settings) -> S3Bucket:
    return S3Bucket(
        "assets", bucket_config, storage_client=mock_storage, settings=settings
    )
