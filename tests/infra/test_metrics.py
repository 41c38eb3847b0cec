import pytest
from prometheus_client import REGISTRY

from cloudassets.infra.observability.metrics import track_operation


def _count(operation: str, outcome: str) -> float:
    value = REGISTRY.get_sample_value(
        "storage_operations_total",
        {"operation": operation, "outcome": outcome},
    )
    return value or 0.0


def test_records_success():
    before = _count("unit_success", "success")

    with track_operation("unit_success"):
        pass

    assert _count("unit_success", "success") == before + 1
    assert (
        REGISTRY.get_sample_value(
            "storage_operation_duration_seconds_count", {"operation": "unit_success"}
        )
        >= 1
    )


def test_records_error_and_reraises():
    before = _count("unit_error", "error")

    with pytest.raises(RuntimeError):
        with track_operation("unit_error"):
            raise RuntimeError("boom")

    assert _count("unit_error", "error") == before + 1


def test_bucket_operations_are_tracked(bucket, mock_storage):
    mock_storage.add_object("test-container", "a.txt", b"abc")
    before = _count("get_file_size", "success")

    bucket.get_file_size("assets/a.txt")

    assert _count("get_file_size", "success") == before + 1
