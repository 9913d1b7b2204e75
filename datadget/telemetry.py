"""
Service-specific telemetry for datadget-api.

Domain metrics and FastAPI instrumentation on top of the shared
``dg_common.observability`` package.
"""

import logging

from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from dg_common.observability import (
    MetricsMiddleware,
    create_counter,
    create_gauge,
    create_histogram,
)

logger = logging.getLogger("telemetry")

# ── Metrics (Prometheus) ──────────────────────────────────────────

HTTP_REQUESTS = create_counter(
    "http_requests_total",
    "Total HTTP requests by method and path",
    ["method", "path", "status"],
)

WIDGET_FETCHES = create_counter(
    "widget_fetches_total",
    "Widget fetch cycles by outcome",
    ["outcome"],
)

WIDGET_FETCH_DURATION = create_histogram(
    "widget_fetch_duration_seconds",
    "Time spent on one fetch-extract-record cycle",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

WIDGET_RELOADS = create_counter(
    "widget_reloads_total",
    "Reload signals sent to the home-screen widget extension",
)

WIDGETS_SCHEDULED = create_gauge(
    "widgets_scheduled",
    "Widgets with an active refresh timer",
)

HISTORY_SAMPLES_PRUNED = create_counter(
    "history_samples_pruned_total",
    "History samples removed by age-based maintenance",
)


# ── Initialization ───────────────────────────────────────────────

def init(app):
    """Attach the request-metrics middleware and OTel auto-instrumentation."""
    app.add_middleware(MetricsMiddleware, counter=HTTP_REQUESTS, ignored_paths={"/metrics"})

    try:
        FastAPIInstrumentor.instrument_app(app)
        logger.info("FastAPI instrumentation enabled")
    except Exception as e:
        logger.warning("FastAPI instrumentation failed: %s", e)

    logger.info("Service telemetry initialised")
