"""Pydantic models for widgets, their data source and history samples."""

from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field


class RefreshInterval(str, Enum):
    MIN_15 = "15min"
    MIN_30 = "30min"
    HOUR_1 = "1h"
    HOUR_4 = "4h"
    HOUR_6 = "6h"
    HOUR_12 = "12h"
    DAY_1 = "24h"
    DAY_2 = "48h"


REFRESH_INTERVAL_MS: dict[RefreshInterval, int] = {
    RefreshInterval.MIN_15: 15 * 60 * 1000,
    RefreshInterval.MIN_30: 30 * 60 * 1000,
    RefreshInterval.HOUR_1: 60 * 60 * 1000,
    RefreshInterval.HOUR_4: 4 * 60 * 60 * 1000,
    RefreshInterval.HOUR_6: 6 * 60 * 60 * 1000,
    RefreshInterval.HOUR_12: 12 * 60 * 60 * 1000,
    RefreshInterval.DAY_1: 24 * 60 * 60 * 1000,
    RefreshInterval.DAY_2: 48 * 60 * 60 * 1000,
}

DEFAULT_COLOR = "#007AFF"


def _new_id() -> str:
    return str(uuid4())


class HeaderPair(BaseModel):
    """A single request header. Pairs with a blank key are never sent."""

    id: str = Field(default_factory=_new_id)
    key: str = ""
    value: str = ""


class HistorySample(BaseModel):
    """One observation; ``error`` is set iff the fetch cycle failed."""

    timestamp: int = Field(description="Epoch milliseconds")
    value: str
    error: str | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


class DataSource(BaseModel):
    url: str
    json_path: str | None = Field(
        default=None, description="Path to the value, e.g. 'data.items[0].price'"
    )
    headers: list[HeaderPair] = Field(default_factory=list)
    last_fetched: int | None = None
    last_value: str | None = None
    last_error: str | None = None
    history: list[HistorySample] = Field(default_factory=list)

    def request_headers(self) -> dict[str, str]:
        return {h.key: h.value for h in self.headers if h.key.strip()}


class Widget(BaseModel):
    id: str
    name: str
    prefix: str = ""
    suffix: str = ""
    color: str = DEFAULT_COLOR
    icon: str | None = None
    data_source: DataSource
    refresh_interval: RefreshInterval = RefreshInterval.HOUR_1
    created_at: int
    updated_at: int

    @property
    def refresh_interval_ms(self) -> int:
        return REFRESH_INTERVAL_MS[self.refresh_interval]


# ── Commands ─────────────────────────────────────────────────────


class DataSourceCreate(BaseModel):
    url: str = Field(min_length=1)
    json_path: str | None = None
    headers: list[HeaderPair] = Field(default_factory=list)


class WidgetCreate(BaseModel):
    name: str = Field(min_length=1)
    prefix: str = ""
    suffix: str = ""
    color: str = DEFAULT_COLOR
    icon: str | None = None
    data_source: DataSourceCreate
    refresh_interval: RefreshInterval = RefreshInterval.HOUR_1


class DataSourceUpdate(BaseModel):
    url: str | None = Field(default=None, min_length=1)
    json_path: str | None = None
    headers: list[HeaderPair] | None = None


class WidgetUpdate(BaseModel):
    """Partial update. Only fields present in the request are applied."""

    name: str | None = Field(default=None, min_length=1)
    prefix: str | None = None
    suffix: str | None = None
    color: str | None = None
    icon: str | None = None
    data_source: DataSourceUpdate | None = None
    refresh_interval: RefreshInterval | None = None


def new_widget(command: WidgetCreate, now: int) -> Widget:
    return Widget(
        id=_new_id(),
        name=command.name,
        prefix=command.prefix,
        suffix=command.suffix,
        color=command.color,
        icon=command.icon,
        data_source=DataSource(
            url=command.data_source.url,
            json_path=command.data_source.json_path or None,
            headers=command.data_source.headers,
        ),
        refresh_interval=command.refresh_interval,
        created_at=now,
        updated_at=now,
    )


def apply_update(widget: Widget, update: WidgetUpdate, now: int) -> Widget:
    """Merge *update* into a copy of *widget*.

    Changing the url or json path makes old samples incomparable with new
    ones, so the history is cleared in that case. Every other change keeps
    it.
    """
    fields = update.model_fields_set
    merged = widget.model_copy(deep=True)

    if "name" in fields and update.name is not None:
        merged.name = update.name
    if "prefix" in fields:
        merged.prefix = update.prefix or ""
    if "suffix" in fields:
        merged.suffix = update.suffix or ""
    if "color" in fields and update.color is not None:
        merged.color = update.color
    if "icon" in fields:
        merged.icon = update.icon
    if "refresh_interval" in fields and update.refresh_interval is not None:
        merged.refresh_interval = update.refresh_interval

    if "data_source" in fields and update.data_source is not None:
        source = merged.data_source
        ds_update = update.data_source
        ds_fields = ds_update.model_fields_set
        source_changed = False

        if "url" in ds_fields and ds_update.url is not None and ds_update.url != source.url:
            source.url = ds_update.url
            source_changed = True
        if "json_path" in ds_fields:
            json_path = ds_update.json_path or None
            if json_path != source.json_path:
                source.json_path = json_path
                source_changed = True
        if "headers" in ds_fields and ds_update.headers is not None:
            source.headers = ds_update.headers

        if source_changed:
            source.history = []

    merged.updated_at = now
    return merged


def schedule_relevant_change(update: WidgetUpdate) -> bool:
    """Whether applying *update* requires the refresh timers to be rebuilt."""
    return "refresh_interval" in update.model_fields_set or "data_source" in update.model_fields_set
