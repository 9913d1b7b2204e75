"""
Hand-off of widget state to the native home-screen widget extension.

The extension reads one flattened JSON record per widget id from a shared
store and re-renders when told to reload. This module builds that record,
writes it, and emits the reload signal; rendering happens elsewhere.
"""

import logging

from datadget import database
from datadget.analytics import DerivedSnapshot, build_snapshot, downsample
from datadget.clock import now_ms
from datadget.models.widgets import Widget
from datadget.telemetry import WIDGET_RELOADS

logger = logging.getLogger("widget_sync")

# The extension draws at most this many chart points (last 7 days).
SYNC_CHART_POINTS = 20


def build_sync_record(widget: Widget, snapshot: DerivedSnapshot) -> dict:
    """Flattened camelCase record consumed by the widget extension."""
    source = widget.data_source
    growth = snapshot.growth_24h
    direction = None
    if growth is not None:
        direction = "up" if growth > 0 else "down" if growth < 0 else "stable"

    chart = downsample(snapshot.chart, SYNC_CHART_POINTS)
    return {
        "id": widget.id,
        "name": widget.name,
        "prefix": widget.prefix,
        "suffix": widget.suffix,
        "color": widget.color,
        "icon": widget.icon,
        "value": source.last_value,
        "lastFetched": source.last_fetched,
        "lastError": source.last_error,
        "refreshIntervalMs": widget.refresh_interval_ms,
        "growthPercentage": growth,
        "growthDirection": direction,
        "chartData": [{"timestamp": p.timestamp, "value": p.value} for p in chart],
    }


def reload_timelines(widget_id: str) -> None:
    """Signal the extension that a record changed."""
    WIDGET_RELOADS.inc()
    logger.debug("Widget reload requested", extra={"widget_id": widget_id})


def sync_widget(widget: Widget, snapshot: DerivedSnapshot | None = None, now: int | None = None) -> dict:
    now = now_ms() if now is None else now
    if snapshot is None:
        snapshot = build_snapshot(widget.data_source.history, now)
    record = build_sync_record(widget, snapshot)
    database.save_sync_record(widget.id, record, now)
    reload_timelines(widget.id)
    return record


def remove_widget_sync(widget_id: str) -> bool:
    removed = database.delete_sync_record(widget_id)
    if removed:
        reload_timelines(widget_id)
    return removed
