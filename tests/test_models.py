"""Tests for widget creation and the partial-update merge."""

import pytest
from pydantic import ValidationError

from datadget.models.widgets import (
    REFRESH_INTERVAL_MS,
    DataSourceUpdate,
    HeaderPair,
    HistorySample,
    RefreshInterval,
    WidgetCreate,
    WidgetUpdate,
    apply_update,
    new_widget,
    schedule_relevant_change,
)

NOW = 1_750_000_000_000


def _widget_with_history():
    widget = new_widget(
        WidgetCreate(
            name="BTC",
            prefix="$",
            data_source={"url": "https://api.example.com/btc", "json_path": "data.price"},
            refresh_interval="1h",
        ),
        now=NOW,
    )
    widget.data_source.history = [
        HistorySample(timestamp=NOW - 1000, value="100"),
        HistorySample(timestamp=NOW, value="101"),
    ]
    return widget


class TestRefreshIntervals:
    def test_interval_mapping(self):
        assert {k.value: v for k, v in REFRESH_INTERVAL_MS.items()} == {
            "15min": 900_000,
            "30min": 1_800_000,
            "1h": 3_600_000,
            "4h": 14_400_000,
            "6h": 21_600_000,
            "12h": 43_200_000,
            "24h": 86_400_000,
            "48h": 172_800_000,
        }

    def test_unknown_interval_rejected(self):
        with pytest.raises(ValidationError):
            WidgetCreate(name="x", data_source={"url": "https://x"}, refresh_interval="5min")


class TestNewWidget:
    def test_assigns_id_and_timestamps(self):
        widget = new_widget(WidgetCreate(name="x", data_source={"url": "https://x"}), now=NOW)
        assert widget.id
        assert widget.created_at == widget.updated_at == NOW
        assert widget.data_source.history == []
        assert widget.refresh_interval is RefreshInterval.HOUR_1
        assert widget.color == "#007AFF"

    def test_ids_are_unique(self):
        command = WidgetCreate(name="x", data_source={"url": "https://x"})
        assert new_widget(command, NOW).id != new_widget(command, NOW).id

    def test_blank_json_path_stored_as_none(self):
        widget = new_widget(
            WidgetCreate(name="x", data_source={"url": "https://x", "json_path": ""}), now=NOW
        )
        assert widget.data_source.json_path is None


class TestApplyUpdate:
    def test_url_change_clears_history(self):
        widget = _widget_with_history()
        updated = apply_update(
            widget,
            WidgetUpdate(data_source=DataSourceUpdate(url="https://api.example.com/eth")),
            now=NOW + 5,
        )
        assert updated.data_source.url == "https://api.example.com/eth"
        assert updated.data_source.history == []
        assert len(widget.data_source.history) == 2

    def test_json_path_change_clears_history(self):
        updated = apply_update(
            _widget_with_history(),
            WidgetUpdate(data_source=DataSourceUpdate(json_path="data.volume")),
            now=NOW + 5,
        )
        assert updated.data_source.json_path == "data.volume"
        assert updated.data_source.history == []

    def test_same_url_keeps_history(self):
        updated = apply_update(
            _widget_with_history(),
            WidgetUpdate(data_source=DataSourceUpdate(url="https://api.example.com/btc")),
            now=NOW + 5,
        )
        assert len(updated.data_source.history) == 2

    def test_color_change_preserves_history(self):
        widget = _widget_with_history()
        updated = apply_update(widget, WidgetUpdate(color="#FF0000"), now=NOW + 5)
        assert updated.color == "#FF0000"
        assert updated.data_source.history == widget.data_source.history

    def test_headers_and_interval_preserve_history(self):
        updated = apply_update(
            _widget_with_history(),
            WidgetUpdate(
                refresh_interval="15min",
                data_source=DataSourceUpdate(headers=[HeaderPair(key="X-Api-Key", value="secret")]),
            ),
            now=NOW + 5,
        )
        assert updated.refresh_interval is RefreshInterval.MIN_15
        assert updated.data_source.request_headers() == {"X-Api-Key": "secret"}
        assert len(updated.data_source.history) == 2

    def test_updated_at_refreshed_created_at_kept(self):
        updated = apply_update(_widget_with_history(), WidgetUpdate(name="Bitcoin"), now=NOW + 5)
        assert updated.name == "Bitcoin"
        assert updated.created_at == NOW
        assert updated.updated_at == NOW + 5

    def test_unset_fields_untouched(self):
        updated = apply_update(_widget_with_history(), WidgetUpdate(suffix=" USD"), now=NOW + 5)
        assert updated.prefix == "$"
        assert updated.suffix == " USD"
        assert updated.data_source.json_path == "data.price"

    def test_schedule_relevant_change(self):
        assert schedule_relevant_change(WidgetUpdate(refresh_interval="4h"))
        assert schedule_relevant_change(WidgetUpdate(data_source=DataSourceUpdate(url="https://y")))
        assert not schedule_relevant_change(WidgetUpdate(color="#000000"))


class TestRequestHeaders:
    def test_blank_keys_dropped(self):
        widget = new_widget(
            WidgetCreate(
                name="x",
                data_source={
                    "url": "https://x",
                    "headers": [
                        {"key": "Authorization", "value": "Bearer t"},
                        {"key": "  ", "value": "ignored"},
                        {"key": "", "value": "ignored"},
                    ],
                },
            ),
            now=NOW,
        )
        assert widget.data_source.request_headers() == {"Authorization": "Bearer t"}
        assert all(h.id for h in widget.data_source.headers)
