"""Prometheus metrics for the EVDock installment service.

Business Metrics (for Sales/Finance):
- evdock_installments_created_total: Plans created by term length
- evdock_installment_payments_total: Payments recorded by outcome
- evdock_overdue_transitions_total: Entries moved from pending to overdue

Technical Metrics (for Engineering/SRE):
- evdock_storage_latency_seconds: Key-value store latency by operation
- evdock_storage_conflicts_total: Optimistic concurrency conflicts
- evdock_http_requests_total: HTTP requests by endpoint/status
"""

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import Counter, Histogram, REGISTRY, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST


# =============================================================================
# Business Metrics
# =============================================================================

installments_created = Counter(
    "evdock_installments_created_total",
    "Total number of installment plans created",
    ["term_months"],
)

payments_recorded = Counter(
    "evdock_installment_payments_total",
    "Total number of installment payments recorded",
    ["outcome"],  # partial, completed
)

overdue_transitions = Counter(
    "evdock_overdue_transitions_total",
    "Total number of schedule entries marked overdue",
)


# =============================================================================
# Technical Metrics
# =============================================================================

storage_latency = Histogram(
    "evdock_storage_latency_seconds",
    "Key-value store latency in seconds",
    ["operation"],  # read, write, remove
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

storage_conflicts = Counter(
    "evdock_storage_conflicts_total",
    "Total number of compare-and-swap conflicts on the installment document",
)

http_requests_total = Counter(
    "evdock_http_requests_total",
    "Total HTTP requests by endpoint and status",
    ["method", "endpoint", "status"],
)

http_request_latency = Histogram(
    "evdock_http_request_latency_seconds",
    "HTTP request latency by endpoint",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_installment_created(term_months: int) -> None:
    """Record a newly created plan."""
    installments_created.labels(term_months=str(term_months)).inc()


def record_payment(completed: bool) -> None:
    """Record a payment; completed means it was the plan's last one."""
    outcome = "completed" if completed else "partial"
    payments_recorded.labels(outcome=outcome).inc()


def record_overdue_transitions(count: int) -> None:
    """Record entries flipped to overdue."""
    if count > 0:
        overdue_transitions.inc(count)


def record_storage_conflict() -> None:
    storage_conflicts.inc()


@contextmanager
def track_storage_latency(operation: str) -> Generator[None, None, None]:
    """Context manager to track key-value store latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        storage_latency.labels(operation=operation).observe(duration)


def record_http_request(method: str, endpoint: str, status: int, duration: float) -> None:
    """Record an HTTP request."""
    http_requests_total.labels(method=method, endpoint=endpoint, status=str(status)).inc()
    http_request_latency.labels(method=method, endpoint=endpoint).observe(duration)


def get_metrics() -> bytes:
    """Get current metrics in Prometheus format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST
