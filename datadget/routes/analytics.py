"""
Analytics routes — derived views over a widget's history.

  GET /widgets/{id}/analytics   Growth per period, trends, 24h change, 7d summary
  GET /widgets/{id}/chart       Numeric series for a time window
  GET /widgets/{id}/summary     Min / max / average for a time window
  GET /widgets/{id}/export      Full history export
  GET /widgets/{id}/sync        Record last handed to the widget extension
"""

from dataclasses import asdict

from fastapi import APIRouter, HTTPException, Query

from datadget import analytics, database
from datadget.clock import now_ms
from datadget.history import export_history
from datadget.models.analytics import (
    AnalyticsResponse,
    ChartPointOut,
    ChartResponse,
    GrowthPeriod,
    SummaryResponse,
    ValueChangeResponse,
)
from datadget.routes.widgets import load_widget_or_404

router = APIRouter(prefix="/widgets", tags=["Analytics"])

MAX_WINDOW_HOURS = 24 * 365


@router.get("/{widget_id}/analytics", response_model=AnalyticsResponse)
def widget_analytics(widget_id: str):
    widget = load_widget_or_404(widget_id)
    history = widget.data_source.history
    snapshot = analytics.build_snapshot(history, now_ms())

    growth = [
        GrowthPeriod(
            hours=hours,
            label=analytics.time_range_label(hours),
            percentage=pct,
            formatted=analytics.format_growth_percentage(pct),
        )
        for hours, pct in snapshot.growth.items()
    ]
    change = snapshot.change
    value = widget.data_source.last_value

    return AnalyticsResponse(
        widget_id=widget.id,
        value=value,
        display_value=(
            analytics.format_value(value, widget.prefix, widget.suffix)
            if value is not None else None
        ),
        growth=growth,
        trend_short=snapshot.trend_short,
        trend=snapshot.trend,
        change_24h=ValueChangeResponse(**asdict(change)) if change else None,
        summary=SummaryResponse(window_hours=analytics.CHART_HOURS, **asdict(snapshot.summary)),
        history_size=len(history),
    )


@router.get("/{widget_id}/chart", response_model=ChartResponse)
def widget_chart(
    widget_id: str,
    hours: int = Query(default=analytics.CHART_HOURS, ge=1, le=MAX_WINDOW_HOURS),
):
    widget = load_widget_or_404(widget_id)
    points = analytics.chart_series(widget.data_source.history, hours, now_ms())
    return ChartResponse(
        widget_id=widget.id,
        window_hours=hours,
        points=[ChartPointOut(timestamp=p.timestamp, value=p.value) for p in points],
        total_points=len(points),
    )


@router.get("/{widget_id}/summary", response_model=SummaryResponse)
def widget_summary(
    widget_id: str,
    hours: int = Query(default=analytics.CHART_HOURS, ge=1, le=MAX_WINDOW_HOURS),
):
    widget = load_widget_or_404(widget_id)
    stats = analytics.summary(widget.data_source.history, hours, now_ms())
    return SummaryResponse(window_hours=hours, **asdict(stats))


@router.get("/{widget_id}/export")
def widget_export(widget_id: str):
    widget = load_widget_or_404(widget_id)
    return export_history(widget)


@router.get("/{widget_id}/sync")
def widget_sync_record(widget_id: str):
    load_widget_or_404(widget_id)
    record = database.get_sync_record(widget_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Widget {widget_id} has not been synced yet")
    return record
