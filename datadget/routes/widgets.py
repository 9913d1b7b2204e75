"""
Widget routes — configuration CRUD and manual refreshes.

  POST   /widgets                 Create a widget and fetch its first value
  GET    /widgets                 List widgets (oldest first)
  GET    /widgets/{id}            Fetch one widget with its history
  PATCH  /widgets/{id}            Partial update (refetches on data source edits)
  DELETE /widgets/{id}            Delete a widget and its history
  POST   /widgets/refresh         Run a fetch cycle for every widget
  POST   /widgets/{id}/refresh    Run a fetch cycle for one widget
  POST   /widgets/preview         Trial fetch of a data source, nothing stored
"""

import asyncio
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Response

from datadget import database, widget_sync
from datadget.clock import now_ms
from datadget.dependencies import get_fetcher, get_scheduler
from datadget.errors import FetchError
from datadget.fetcher import WidgetFetcher, stringify
from datadget.json_path import extract
from datadget.models.analytics import PreviewResponse, RefreshAllResponse, RefreshResponse
from datadget.models.widgets import (
    DataSource,
    DataSourceCreate,
    Widget,
    WidgetCreate,
    WidgetUpdate,
    apply_update,
    new_widget,
    schedule_relevant_change,
)
from datadget.scheduler import WidgetScheduler

logger = logging.getLogger("widgets")

router = APIRouter(prefix="/widgets", tags=["Widgets"])


def load_widget_or_404(widget_id: str) -> Widget:
    widget = database.get_widget(widget_id)
    if widget is None:
        raise HTTPException(status_code=404, detail=f"Widget {widget_id} not found")
    return widget


async def _reschedule(scheduler: WidgetScheduler | None) -> None:
    if scheduler is not None:
        await scheduler.reschedule()


@router.post("", response_model=Widget, status_code=201)
async def create_widget(
    command: WidgetCreate,
    background_tasks: BackgroundTasks,
    fetcher: WidgetFetcher = Depends(get_fetcher),
    scheduler: WidgetScheduler | None = Depends(get_scheduler),
):
    widget = new_widget(command, now_ms())
    await asyncio.to_thread(database.save_widget, widget)
    logger.info("Created widget %s", widget.name, extra={"widget_id": widget.id})
    await _reschedule(scheduler)
    # first value without waiting a full refresh interval
    background_tasks.add_task(fetcher.run_cycle, widget.id)
    return widget


@router.post("/preview", response_model=PreviewResponse)
async def preview_data_source(
    source: DataSourceCreate,
    fetcher: WidgetFetcher = Depends(get_fetcher),
):
    candidate = DataSource(url=source.url, json_path=source.json_path or None, headers=source.headers)
    try:
        document = await fetcher.fetch_document(candidate)
    except FetchError as exc:
        logger.info("Preview of %s failed: %s", candidate.url, exc)
        return PreviewResponse(error=str(exc))

    value = extract(document, candidate.json_path)
    return PreviewResponse(
        document=document,
        value=stringify(value) if value is not None else None,
    )


@router.get("", response_model=list[Widget])
def list_widgets():
    return database.list_widgets()


@router.post("/refresh", response_model=RefreshAllResponse)
async def refresh_all(fetcher: WidgetFetcher = Depends(get_fetcher)):
    results = await fetcher.refresh_all()
    failed = sum(1 for value in results.values() if value is None)
    return RefreshAllResponse(
        refreshed=len(results) - failed,
        failed=failed,
        results=results,
    )


@router.get("/{widget_id}", response_model=Widget)
def get_widget(widget_id: str):
    return load_widget_or_404(widget_id)


@router.patch("/{widget_id}", response_model=Widget)
async def update_widget(
    widget_id: str,
    update: WidgetUpdate,
    background_tasks: BackgroundTasks,
    fetcher: WidgetFetcher = Depends(get_fetcher),
    scheduler: WidgetScheduler | None = Depends(get_scheduler),
):
    widget = await asyncio.to_thread(load_widget_or_404, widget_id)
    updated = apply_update(widget, update, now_ms())
    await asyncio.to_thread(database.save_widget, updated)
    await asyncio.to_thread(widget_sync.sync_widget, updated)

    if schedule_relevant_change(update):
        await _reschedule(scheduler)
    if "data_source" in update.model_fields_set:
        background_tasks.add_task(fetcher.run_cycle, widget_id)
    return updated


@router.delete("/{widget_id}", status_code=204)
async def delete_widget(
    widget_id: str,
    scheduler: WidgetScheduler | None = Depends(get_scheduler),
):
    deleted = await asyncio.to_thread(database.delete_widget, widget_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Widget {widget_id} not found")
    await asyncio.to_thread(widget_sync.remove_widget_sync, widget_id)
    if scheduler is not None:
        scheduler.cancel(widget_id)
    logger.info("Deleted widget", extra={"widget_id": widget_id})
    return Response(status_code=204)


@router.post("/{widget_id}/refresh", response_model=RefreshResponse)
async def refresh_widget(widget_id: str, fetcher: WidgetFetcher = Depends(get_fetcher)):
    await asyncio.to_thread(load_widget_or_404, widget_id)
    value = await fetcher.run_cycle(widget_id)
    widget = await asyncio.to_thread(database.get_widget, widget_id)
    source = widget.data_source if widget else None
    return RefreshResponse(
        widget_id=widget_id,
        value=value,
        error=source.last_error if source else None,
        last_fetched=source.last_fetched if source else None,
    )
