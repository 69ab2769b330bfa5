"""
Cache Metrics

Prometheus counters for cache lookups, upstream fetches and invalidations.
Kept in a dedicated registry exposed by the /metrics endpoint.
"""

from prometheus_client import CollectorRegistry, Counter, generate_latest

registry = CollectorRegistry()

cache_lookups = Counter(
    "parameter_cache_lookups_total",
    "Cache lookups by entity kind and result",
    ["kind", "result"],
    registry=registry,
)

upstream_fetches = Counter(
    "parameter_cache_upstream_fetches_total",
    "Fetches from the parameter service by entity kind and outcome",
    ["kind", "outcome"],
    registry=registry,
)

cache_invalidations = Counter(
    "parameter_cache_invalidations_total",
    "Invalidations by entity kind and outcome",
    ["kind", "outcome"],
    registry=registry,
)

save_failures = Counter(
    "parameter_cache_save_failures_total",
    "Entities from the parameter service that could not be cached",
    ["kind", "error_code"],
    registry=registry,
)


def record_lookup(kind: str, hit: bool) -> None:
    cache_lookups.labels(kind=kind, result="hit" if hit else "miss").inc()


def record_upstream_fetch(kind: str, success: bool) -> None:
    upstream_fetches.labels(
        kind=kind, outcome="success" if success else "failure"
    ).inc()


def record_invalidation(kind: str, success: bool) -> None:
    cache_invalidations.labels(
        kind=kind, outcome="success" if success else "failure"
    ).inc()


def record_save_failure(kind: str, error_code: str) -> None:
    save_failures.labels(kind=kind, error_code=error_code or "UNKNOWN").inc()


def export_metrics() -> bytes:
    """Metrics in the Prometheus text format."""
    return generate_latest(registry)
