import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import Counter, Histogram

# Low-cardinality labels only: operation name and outcome, never object keys.
OPERATIONS = Counter(
    "storage_operations_total",
    "Total bucket operations against object storage",
    ["operation", "outcome"],
)

LATENCY = Histogram(
    "storage_operation_duration_seconds",
    "Bucket operation latency in seconds",
    ["operation"],
)


@contextmanager
def track_operation(operation: str) -> Iterator[None]:
    start = time.perf_counter()
    outcome = "error"
    try:
        yield
        outcome = "success"
    finally:
        OPERATIONS.labels(operation=operation, outcome=outcome).inc()
        LATENCY.labels(operation=operation).observe(time.perf_counter() - start)
