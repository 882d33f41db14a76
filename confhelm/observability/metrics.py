"""Prometheus metrics for confhelm.

Counts property loads and writes, conversion failures, service lookups
and reference releases.
"""

from prometheus_client import Counter, Histogram

# Property store metrics
PROPERTY_LOADS = Counter(
    "confhelm_property_loads_total",
    "Property file load attempts",
    labelnames=["outcome"],
)

PROPERTY_WRITES = Counter(
    "confhelm_property_writes_total",
    "Property file rewrite attempts",
    labelnames=["outcome"],
)

CONVERSION_ERRORS = Counter(
    "confhelm_property_conversion_errors_total",
    "Property values that could not be coerced to the requested kind",
    labelnames=["kind"],
)

# Service lookup metrics
SERVICE_LOOKUPS = Counter(
    "confhelm_service_lookups_total",
    "Service lookups by mode and outcome",
    labelnames=["mode", "outcome"],
)

SERVICE_WAIT_SECONDS = Histogram(
    "confhelm_service_wait_seconds",
    "Time spent waiting for a service to become available",
    buckets=(0.001, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

SERVICE_RELEASE_FAILURES = Counter(
    "confhelm_service_release_failures_total",
    "Service references whose release raised",
)


def setup_metrics() -> None:
    """Pre-create the labelled series so they export zero before first use."""
    for outcome in ("success", "failure"):
        PROPERTY_LOADS.labels(outcome=outcome)
        PROPERTY_WRITES.labels(outcome=outcome)
    for mode, outcome in (
        ("get", "found"),
        ("get", "not_found"),
        ("wait", "found"),
        ("wait", "timeout"),
        ("query", "registry_error"),
    ):
        SERVICE_LOOKUPS.labels(mode=mode, outcome=outcome)
