"""
Prometheus metric factories with idempotent registration.

Module-level metrics get re-created whenever a module is re-imported (tests,
reloaders), so every factory returns the already-registered collector
instead of failing on the duplicate name. Asking for a name that is taken
by a different metric type is still an error.
"""

import os

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)


def _find_registered(name: str):
    collector = REGISTRY._names_to_collectors.get(name)
    if collector is not None:
        return collector
    # counters drop their _total suffix, info metrics gain an _info one
    for collector in REGISTRY._names_to_collectors.values():
        if name in (getattr(collector, "_name", None), getattr(collector, "_original_name", None)):
            return collector
    return None


def _register(metric_cls, name, documentation, labelnames=None, **options):
    """Register *name* as a ``metric_cls`` or return the collector already under it."""
    options = {key: value for key, value in options.items() if value}
    try:
        return metric_cls(name, documentation, labelnames=tuple(labelnames or ()), **options)
    except ValueError:
        existing = _find_registered(name)
        if existing is None:
            raise
    if not isinstance(existing, metric_cls):
        raise ValueError(
            f"Metric {name!r} is already registered as a {type(existing).__name__}, "
            f"not a {metric_cls.__name__}"
        )
    return existing


def create_counter(name: str, documentation: str, labelnames: list[str] = None) -> Counter:
    return _register(Counter, name, documentation, labelnames)


def create_gauge(name: str, documentation: str, labelnames: list[str] = None) -> Gauge:
    return _register(Gauge, name, documentation, labelnames)


def create_histogram(
    name: str,
    documentation: str,
    buckets: list[float] = None,
    labelnames: list[str] = None,
) -> Histogram:
    """Histogram with prometheus_client's default buckets unless *buckets* is given."""
    return _register(Histogram, name, documentation, labelnames, buckets=buckets)


def create_info(name: str, documentation: str) -> Info:
    return _register(Info, name, documentation)


def create_service_info(service_name: str, version: str, environment: str | None = None) -> Info:
    """
    Create and populate the service-metadata Info metric.

    Args:
        service_name: Metric name prefix (e.g. ``"datadget_api"``).
        version: Service version string.
        environment: Deployment environment. Falls back to ``$ENVIRONMENT``,
            then ``"development"``.
    """
    info = create_info(service_name, "Service metadata")
    info.info({
        "version": version,
        "environment": environment or os.environ.get("ENVIRONMENT", "development"),
    })
    return info


def metrics_response():
    """Return ``(body, content_type)`` for a Prometheus scrape response."""
    return generate_latest(), CONTENT_TYPE_LATEST
