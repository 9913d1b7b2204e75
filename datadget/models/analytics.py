"""Response models for refresh, analytics and maintenance endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class RefreshResponse(BaseModel):
    widget_id: str
    value: str | None
    error: str | None = None
    last_fetched: int | None = None


class RefreshAllResponse(BaseModel):
    refreshed: int
    failed: int
    results: dict[str, str | None]


class GrowthPeriod(BaseModel):
    hours: int
    label: str = Field(description="Short label, e.g. '24h' or '1w'")
    percentage: float | None
    formatted: str = Field(description="e.g. '+12.3%', '—' when unavailable")


class ChartPointOut(BaseModel):
    timestamp: int
    value: float


class SummaryResponse(BaseModel):
    window_hours: int
    min: float | None
    max: float | None
    average: float | None
    latest: float | None
    data_points: int


class ValueChangeResponse(BaseModel):
    current: float
    previous: float
    absolute_change: float
    percentage_change: float | None
    direction: str = Field(description="up, down or stable")


class AnalyticsResponse(BaseModel):
    widget_id: str
    value: str | None
    display_value: str | None = Field(description="Value with prefix and suffix applied")
    growth: list[GrowthPeriod]
    trend_short: str | None = Field(description="Trend over the last 3 values")
    trend: str | None = Field(description="Trend over the last 5 values")
    change_24h: ValueChangeResponse | None
    summary: SummaryResponse
    history_size: int


class ChartResponse(BaseModel):
    widget_id: str
    window_hours: int
    points: list[ChartPointOut]
    total_points: int


class PruneResponse(BaseModel):
    max_age_days: int
    samples_removed: int


class HealthResponse(BaseModel):
    status: str
    db_connected: bool
    total_widgets: int
    scheduled_widgets: int


class PreviewResponse(BaseModel):
    """Result of a trial fetch; nothing is stored."""

    document: Any = Field(default=None, description="Decoded JSON body, for picking a path")
    value: str | None = Field(default=None, description="Value the path resolves to")
    error: str | None = None
