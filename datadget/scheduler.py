"""
Per-widget refresh timers and history maintenance.

``WidgetScheduler`` owns one asyncio task per widget, keyed by widget id.
Each task sleeps for the widget's refresh interval and then runs a fetch
cycle, forever. Any configuration change rebuilds the whole table with
``schedule_all``: every task is cancelled first, so calling it repeatedly
never leaves duplicate timers behind.

``run_due`` is the entry point for wake-ups that do not come from these
timers (a platform background callback, a cron job): it refreshes every
widget whose interval has elapsed since its last successful fetch.
"""

import asyncio
import logging
import os

from datadget import database
from datadget.clock import now_ms
from datadget.fetcher import WidgetFetcher
from datadget.history import HistoryStore, age_cutoff
from datadget.models.widgets import Widget
from datadget.telemetry import HISTORY_SAMPLES_PRUNED, WIDGETS_SCHEDULED

logger = logging.getLogger("scheduler")

MAINTENANCE_INTERVAL_SECONDS = int(os.environ.get("MAINTENANCE_INTERVAL_SECONDS", "3600"))


def run_maintenance(now: int | None = None, max_age_days: int | None = None) -> int:
    """Prune expired samples from every widget (synchronous).

    Returns the number of samples removed.
    """
    cutoff = age_cutoff(now, max_age_days)
    removed_total = 0
    for listed in database.list_widgets():
        if not any(s.timestamp < cutoff for s in listed.data_source.history):
            continue
        # prune the stored copy so samples appended since the listing survive
        widget = database.get_widget(listed.id)
        if widget is None:
            continue
        removed = HistoryStore.for_widget(widget).prune_older_than(cutoff)
        if removed:
            database.save_widget(widget)
            removed_total += removed
            logger.info(
                "Pruned %d expired samples from %s", removed, widget.name,
                extra={"widget_id": widget.id},
            )
    if removed_total:
        HISTORY_SAMPLES_PRUNED.inc(removed_total)
    return removed_total


def is_due(widget: Widget, now: int) -> bool:
    last_fetched = widget.data_source.last_fetched or 0
    return now - last_fetched >= widget.refresh_interval_ms


class WidgetScheduler:
    """Refresh timers for all widgets.

    Args:
        fetcher: Runs the actual fetch cycles.
        maintenance_interval: Seconds between history pruning passes.
    """

    def __init__(self, fetcher: WidgetFetcher, maintenance_interval: int | None = None):
        self.fetcher = fetcher
        self.maintenance_interval = maintenance_interval or MAINTENANCE_INTERVAL_SECONDS
        self._tasks: dict[str, asyncio.Task] = {}
        self._maintenance_task: asyncio.Task | None = None

    # ── lifecycle ────────────────────────────────────────────────

    async def init(self) -> None:
        """Schedule every stored widget and start the maintenance loop."""
        await self.reschedule()
        if self._maintenance_task is None:
            self._maintenance_task = asyncio.create_task(
                self._maintenance_loop(), name="history-maintenance"
            )
        logger.info("Scheduler started with %d widgets", len(self._tasks))

    async def shutdown(self) -> None:
        tasks = list(self._tasks.values())
        self.cancel_all()
        if self._maintenance_task is not None:
            self._maintenance_task.cancel()
            tasks.append(self._maintenance_task)
            self._maintenance_task = None
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Scheduler stopped")

    # ── timers ───────────────────────────────────────────────────

    @property
    def scheduled_ids(self) -> list[str]:
        return list(self._tasks)

    def schedule_all(self, widgets: list[Widget]) -> None:
        """Replace all timers with one per widget in *widgets*."""
        self.cancel_all()
        for widget in widgets:
            interval = widget.refresh_interval_ms / 1000
            self._tasks[widget.id] = asyncio.create_task(
                self._refresh_loop(widget.id, interval), name=f"refresh:{widget.id}"
            )
        WIDGETS_SCHEDULED.set(len(self._tasks))
        logger.debug("Scheduled %d widgets", len(self._tasks))

    async def reschedule(self) -> None:
        widgets = await asyncio.to_thread(database.list_widgets)
        self.schedule_all(widgets)

    def cancel(self, widget_id: str) -> bool:
        task = self._tasks.pop(widget_id, None)
        if task is None:
            return False
        task.cancel()
        WIDGETS_SCHEDULED.set(len(self._tasks))
        return True

    def cancel_all(self) -> None:
        for task in self._tasks.values():
            task.cancel()
        self._tasks.clear()
        WIDGETS_SCHEDULED.set(0)

    async def run_due(self, now: int | None = None) -> list[str]:
        """Run a cycle for every widget whose refresh interval has elapsed."""
        now = now_ms() if now is None else now
        widgets = await asyncio.to_thread(database.list_widgets)
        refreshed = []
        for widget in widgets:
            if not is_due(widget, now):
                continue
            logger.info("Refreshing due widget %s", widget.name, extra={"widget_id": widget.id})
            await self.fetcher.run_cycle(widget.id)
            refreshed.append(widget.id)
        return refreshed

    # ── loops ────────────────────────────────────────────────────

    async def _refresh_loop(self, widget_id: str, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.fetcher.run_cycle(widget_id)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Refresh tick failed", extra={"widget_id": widget_id})

    async def _maintenance_loop(self) -> None:
        while True:
            try:
                await asyncio.to_thread(run_maintenance)
            except asyncio.CancelledError:
                logger.info("History maintenance cancelled, shutting down")
                raise
            except Exception:
                logger.exception("History maintenance failed")
            await asyncio.sleep(self.maintenance_interval)
