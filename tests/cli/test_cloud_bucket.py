from __future__ import annotations

import io
from unittest.mock import patch

import pytest

from cloudassets.buckets.s3_bucket import S3Bucket
from cloudassets.common.config import Settings
from scripts.cloud_bucket import build_bucket, build_parser, main, run
from tests.buckets.mock_storage import CONTAINER


def _run(argv, bucket, settings):
    out = io.StringIO()
    code = run(build_parser().parse_args(argv), bucket, settings=settings, out=out)
    return code, out.getvalue()


def test_put_then_size(tmp_path, bucket, mock_storage, settings):
    local = tmp_path / "report.txt"
    local.write_bytes(b"quarterly")

    code, output = _run(["put", str(local), "assets/docs/report.txt"], bucket, settings)

    assert code == 0
    assert "Uploaded" in output
    assert mock_storage.objects[f"{CONTAINER}/docs/report.txt"]["data"] == b"quarterly"
    assert _run(["size", "assets/docs/report.txt"], bucket, settings) == (0, "9\n")


def test_size_missing_exits_nonzero(bucket, settings):
    assert _run(["size", "assets/none.txt"], bucket, settings) == (1, "-1\n")


def test_get_writes_output_file(tmp_path, bucket, mock_storage, settings):
    mock_storage.add_object(CONTAINER, "a.txt", b"payload")
    target = tmp_path / "out.txt"

    code, _ = _run(["get", "assets/a.txt", "-o", str(target)], bucket, settings)

    assert code == 0
    assert target.read_bytes() == b"payload"


def test_mv_and_exists(bucket, mock_storage, settings):
    mock_storage.add_object(CONTAINER, "old.txt", b"x")

    assert _run(["mv", "assets/old.txt", "assets/new.txt"], bucket, settings)[0] == 0
    assert _run(["exists", "assets/new.txt"], bucket, settings) == (0, "yes\n")
    assert _run(["exists", "assets/old.txt"], bucket, settings) == (1, "no\n")


def test_rm(bucket, mock_storage, settings):
    mock_storage.add_object(CONTAINER, "a.txt", b"x")

    code, _ = _run(["rm", "assets/a.txt"], bucket, settings)

    assert code == 0
    assert mock_storage.objects == {}


def test_link_uses_default_expiry(bucket, mock_storage, settings):
    mock_storage.add_object(CONTAINER, "a.txt", b"x")

    code, output = _run(["link", "assets/a.txt"], bucket, settings)

    assert code == 0
    assert output.strip().endswith(f"expires={settings.STORAGE_PRESIGN_EXPIRES_SECONDS}")


def test_build_bucket_from_settings():
    settings = Settings(
        ASSETS_ROOT="assets",
        S3_CONTAINER=CONTAINER,
        S3_REGION="us-east-1",
        S3_USE_ROLE=True,
    )
    with patch("cloudassets.buckets.s3_bucket.S3StorageClient"):
        bucket = build_bucket(settings)

    assert isinstance(bucket, S3Bucket)
    assert bucket.container_name == CONTAINER
    assert bucket.path == "assets"


def test_main_reports_config_errors(capsys):
    with patch("scripts.cloud_bucket.get_settings", return_value=Settings()), patch(
        "scripts.cloud_bucket.setup_logging"
    ):
        code = main(["exists", "assets/a.txt"])

    assert code == 1
    assert "missing configuration key - Container" in capsys.readouterr().err


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
