from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

ENV_FILE = Path(".env")

# S3 rejects multipart parts smaller than this, except the last one.
MIN_PART_SIZE_BYTES = 5 * 1024 * 1024
DEFAULT_PART_SIZE_BYTES = 8 * 1024 * 1024


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)


@dataclass
class Settings:
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    ASSETS_ROOT: str = "assets"
    S3_CONTAINER: str | None = None
    S3_REGION: str | None = None
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    S3_USE_ROLE: bool = False
    S3_FORCE_DOWNLOAD: bool = False
    S3_ENDPOINT_URL: str | None = None
    S3_ADDRESSING_STYLE: str = "path"
    S3_BASE_URL: str | None = None
    S3_SECURE_URL: str | None = None
    STORAGE_PART_SIZE_BYTES: int = DEFAULT_PART_SIZE_BYTES
    STORAGE_PRESIGN_EXPIRES_SECONDS: int = 3600
    STORAGE_MAX_ATTEMPTS: int = 5
    STORAGE_CONNECT_TIMEOUT: int = 10
    STORAGE_READ_TIMEOUT: int = 60

    def __post_init__(self) -> None:
        if self.STORAGE_PART_SIZE_BYTES < MIN_PART_SIZE_BYTES:
            raise ValueError(
                f"STORAGE_PART_SIZE_BYTES must be at least {MIN_PART_SIZE_BYTES} bytes."
            )
        if self.STORAGE_PRESIGN_EXPIRES_SECONDS <= 0:
            raise ValueError("STORAGE_PRESIGN_EXPIRES_SECONDS must be positive.")

    def bucket_config(self) -> dict[str, Any]:
        """Render the S3 settings as a bucket configuration mapping."""
        cfg: dict[str, Any] = {
            "Type": "s3",
            "Container": self.S3_CONTAINER,
            "Region": self.S3_REGION,
            "ApiKey": self.S3_ACCESS_KEY_ID,
            "ApiSecret": self.S3_SECRET_ACCESS_KEY,
            "UseRole": self.S3_USE_ROLE,
            "ForceDownload": self.S3_FORCE_DOWNLOAD,
            "AddressingStyle": self.S3_ADDRESSING_STYLE,
            "PartSize": self.STORAGE_PART_SIZE_BYTES,
        }
        if self.S3_ENDPOINT_URL:
            cfg["Endpoint"] = self.S3_ENDPOINT_URL
        if self.S3_BASE_URL:
            cfg["BaseURL"] = self.S3_BASE_URL
        if self.S3_SECURE_URL:
            cfg["SecureURL"] = self.S3_SECURE_URL
        return cfg

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            LOG_LEVEL=os.environ.get("LOG_LEVEL", cls.LOG_LEVEL),
            LOG_JSON=_as_bool(os.environ.get("LOG_JSON"), cls.LOG_JSON),
            ASSETS_ROOT=os.environ.get("ASSETS_ROOT", cls.ASSETS_ROOT),
            S3_CONTAINER=os.environ.get("S3_CONTAINER"),
            S3_REGION=os.environ.get("S3_REGION") or os.environ.get("AWS_REGION"),
            S3_ACCESS_KEY_ID=os.environ.get("S3_ACCESS_KEY_ID"),
            S3_SECRET_ACCESS_KEY=os.environ.get("S3_SECRET_ACCESS_KEY"),
            S3_USE_ROLE=_as_bool(os.environ.get("S3_USE_ROLE"), cls.S3_USE_ROLE),
            S3_FORCE_DOWNLOAD=_as_bool(
                os.environ.get("S3_FORCE_DOWNLOAD"), cls.S3_FORCE_DOWNLOAD
            ),
            S3_ENDPOINT_URL=os.environ.get("S3_ENDPOINT_URL"),
            S3_ADDRESSING_STYLE=os.environ.get(
                "S3_ADDRESSING_STYLE", cls.S3_ADDRESSING_STYLE
            ),
            S3_BASE_URL=os.environ.get("S3_BASE_URL"),
            S3_SECURE_URL=os.environ.get("S3_SECURE_URL"),
            STORAGE_PART_SIZE_BYTES=_as_int(
                os.environ.get("STORAGE_PART_SIZE_BYTES"), cls.STORAGE_PART_SIZE_BYTES
            ),
            STORAGE_PRESIGN_EXPIRES_SECONDS=_as_int(
                os.environ.get("STORAGE_PRESIGN_EXPIRES_SECONDS"),
                cls.STORAGE_PRESIGN_EXPIRES_SECONDS,
            ),
            STORAGE_MAX_ATTEMPTS=_as_int(
                os.environ.get("STORAGE_MAX_ATTEMPTS"), cls.STORAGE_MAX_ATTEMPTS
            ),
            STORAGE_CONNECT_TIMEOUT=_as_int(
                os.environ.get("STORAGE_CONNECT_TIMEOUT"), cls.STORAGE_CONNECT_TIMEOUT
            ),
            STORAGE_READ_TIMEOUT=_as_int(
                os.environ.get("STORAGE_READ_TIMEOUT"), cls.STORAGE_READ_TIMEOUT
            ),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
