"""
Fetch-extract-record cycle for a single widget.

One cycle:
  1. GET the widget's URL with its configured headers.
  2. Parse the body as JSON and pull the value out with the widget's path.
  3. Record the outcome on the widget and append one history sample.
     Failures are recorded too, carrying the last known value forward.
  4. Persist the widget and push a fresh snapshot to the widget extension.

There is no retry inside a cycle and no de-duplication of overlapping
cycles for the same widget; the last write wins.
"""

import asyncio
import json
import logging
import os
import time
from typing import Any, Callable

import httpx
from opentelemetry import trace

from datadget import database, widget_sync
from datadget.analytics import build_snapshot
from datadget.clock import now_ms
from datadget.errors import BodyParseFailure, FetchError, HttpStatusFailure, TransportFailure
from datadget.history import HistoryStore
from datadget.json_path import extract
from datadget.models.widgets import DataSource, HistorySample, Widget
from datadget.telemetry import WIDGET_FETCH_DURATION, WIDGET_FETCHES

logger = logging.getLogger("fetcher")

FETCH_TIMEOUT_SECONDS = float(os.environ.get("FETCH_TIMEOUT_SECONDS", "10"))


def stringify(value: Any) -> str:
    """Render an extracted JSON value the way it is stored in history."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def record_success(widget: Widget, value: str, now: int, cap: int | None = None) -> None:
    source = widget.data_source
    source.last_fetched = now
    source.last_value = value
    source.last_error = None
    HistoryStore.for_widget(widget, cap).append(HistorySample(timestamp=now, value=value))


def record_failure(widget: Widget, message: str, now: int, cap: int | None = None) -> None:
    source = widget.data_source
    source.last_error = message
    HistoryStore.for_widget(widget, cap).append(
        HistorySample(timestamp=now, value=source.last_value or "", error=message)
    )


def _describe(exc: Exception) -> str:
    return str(exc) or type(exc).__name__


class WidgetFetcher:
    """Runs fetch cycles against an injected ``httpx.AsyncClient``.

    Args:
        client: Transport to use. When omitted a client with
            ``FETCH_TIMEOUT_SECONDS`` is created and owned by the fetcher.
        clock: Returns the current time in epoch milliseconds.
        history_cap: Overrides ``HISTORY_MAX_SAMPLES`` for appended samples.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], int] = now_ms,
        history_cap: int | None = None,
    ):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=FETCH_TIMEOUT_SECONDS, follow_redirects=True
        )
        self.clock = clock
        self.history_cap = history_cap

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def fetch_document(self, source: DataSource) -> Any:
        """GET the source and decode its JSON body; raises a ``FetchError`` subclass."""
        try:
            response = await self.client.get(source.url, headers=source.request_headers())
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportFailure(f"Request failed: {_describe(exc)}") from exc
        except ValueError as exc:
            # header values that cannot be encoded, malformed URLs
            raise TransportFailure(f"Request failed: {_describe(exc)}") from exc

        if not response.is_success:
            raise HttpStatusFailure(response.status_code, response.reason_phrase)

        try:
            return response.json()
        except ValueError as exc:
            raise BodyParseFailure(f"Invalid JSON response: {_describe(exc)}") from exc

    async def fetch_value(self, source: DataSource) -> str:
        """Fetch and extract one value; raises a ``FetchError`` subclass."""
        document = await self.fetch_document(source)
        return stringify(extract(document, source.json_path))

    async def run_cycle(self, widget_id: str) -> str | None:
        """Run one cycle. Returns the new value, or ``None`` on any failure."""
        tracer = trace.get_tracer(__name__)
        with tracer.start_as_current_span(
            "widget fetch cycle", attributes={"widget.id": widget_id}
        ) as span:
            try:
                return await self._run_cycle(widget_id, span)
            except Exception:
                logger.exception("Fetch cycle crashed", extra={"widget_id": widget_id})
                WIDGET_FETCHES.labels(outcome="crashed").inc()
                return None

    async def _run_cycle(self, widget_id: str, span) -> str | None:
        widget = await asyncio.to_thread(database.get_widget, widget_id)
        if widget is None:
            logger.info("Widget %s not found, skipping fetch", widget_id)
            return None

        started = time.perf_counter()
        value = None
        error = None
        try:
            value = await self.fetch_value(widget.data_source)
        except FetchError as exc:
            error = str(exc)
        WIDGET_FETCH_DURATION.observe(time.perf_counter() - started)

        now = self.clock()
        # Re-read so a widget deleted or edited while the request was in
        # flight is not resurrected or rolled back.
        current = await asyncio.to_thread(database.get_widget, widget_id)
        if current is None:
            logger.info("Widget %s deleted during fetch, result dropped", widget_id)
            span.set_attribute("widget.outcome", "dropped")
            return None

        if error is None:
            record_success(current, value, now, self.history_cap)
            outcome = "success"
            logger.info("Fetched %s = %s", current.name, value, extra={"widget_id": widget_id})
        else:
            record_failure(current, error, now, self.history_cap)
            outcome = "failure"
            logger.warning("Fetch failed for %s: %s", current.name, error, extra={"widget_id": widget_id})

        await asyncio.to_thread(database.save_widget, current)

        snapshot = build_snapshot(current.data_source.history, now)
        await asyncio.to_thread(widget_sync.sync_widget, current, snapshot, now)

        WIDGET_FETCHES.labels(outcome=outcome).inc()
        span.set_attribute("widget.outcome", outcome)
        span.set_attribute("widget.history_size", len(current.data_source.history))
        return value

    async def refresh_all(self) -> dict[str, str | None]:
        """Run a cycle for every widget, one after another."""
        widgets = await asyncio.to_thread(database.list_widgets)
        results = {}
        for widget in widgets:
            results[widget.id] = await self.run_cycle(widget.id)
        return results
