from .widgets import (
    REFRESH_INTERVAL_MS,
    DataSource,
    DataSourceCreate,
    DataSourceUpdate,
    HeaderPair,
    HistorySample,
    RefreshInterval,
    Widget,
    WidgetCreate,
    WidgetUpdate,
)
from .analytics import (
    AnalyticsResponse,
    ChartPointOut,
    ChartResponse,
    GrowthPeriod,
    HealthResponse,
    PreviewResponse,
    PruneResponse,
    RefreshAllResponse,
    RefreshResponse,
    SummaryResponse,
    ValueChangeResponse,
)

__all__ = [
    "REFRESH_INTERVAL_MS",
    "DataSource",
    "DataSourceCreate",
    "DataSourceUpdate",
    "HeaderPair",
    "HistorySample",
    "RefreshInterval",
    "Widget",
    "WidgetCreate",
    "WidgetUpdate",
    "AnalyticsResponse",
    "ChartPointOut",
    "ChartResponse",
    "GrowthPeriod",
    "HealthResponse",
    "PreviewResponse",
    "PruneResponse",
    "RefreshAllResponse",
    "RefreshResponse",
    "SummaryResponse",
    "ValueChangeResponse",
]
