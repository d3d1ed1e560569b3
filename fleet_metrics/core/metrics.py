"""Prometheus metrics for the query service."""

from shared.metrics import QUERY_LATENCY_BUCKETS, get_counter, get_histogram

SERVICE = "fleet_metrics"

QUERY_REQUESTS = get_counter(
    "query_requests_total", "Queries received", SERVICE, labelnames=("query",)
)
QUERY_FAILURES = get_counter(
    "query_failures_total",
    "Queries that failed",
    SERVICE,
    labelnames=("query", "error"),
)
QUERY_LATENCY = get_histogram(
    "query_latency_seconds",
    "End-to-end query latency",
    SERVICE,
    buckets=QUERY_LATENCY_BUCKETS,
    labelnames=("query",),
)

STORE_FETCH_LATENCY = get_histogram(
    "store_fetch_latency_seconds",
    "Time spent reading raw samples",
    SERVICE,
    buckets=QUERY_LATENCY_BUCKETS,
    labelnames=("source",),
)
STORE_ERRORS = get_counter(
    "store_errors_total", "Sample store failures", SERVICE, labelnames=("source",)
)
STORE_RETRIES = get_counter(
    "store_retries_total", "Sample store retry attempts", SERVICE
)

RATE_PAIRS_REJECTED = get_counter(
    "rate_pairs_rejected_total",
    "Bucket pairs dropped by the validity rule",
    SERVICE,
    labelnames=("metric_kind", "reason"),
)
TIMELINE_TRUNCATIONS = get_counter(
    "timeline_truncations_total",
    "Timelines cut at the point ceiling",
    SERVICE,
)
