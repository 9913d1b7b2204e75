import asyncio

from fastapi import APIRouter, Depends, Query, Response

from datadget.database import check_connection, count_widgets
from datadget.dependencies import get_scheduler
from datadget.history import HISTORY_MAX_AGE_DAYS
from datadget.models.analytics import HealthResponse, PruneResponse
from datadget.scheduler import WidgetScheduler, run_maintenance
from dg_common.observability import metrics_response

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
def health(scheduler: WidgetScheduler | None = Depends(get_scheduler)):
    db_ok = check_connection()
    return HealthResponse(
        status="healthy" if db_ok else "unhealthy",
        db_connected=db_ok,
        total_widgets=count_widgets() if db_ok else 0,
        scheduled_widgets=len(scheduler.scheduled_ids) if scheduler else 0,
    )


@router.get("/metrics")
def metrics():
    body, content_type = metrics_response()
    return Response(content=body, media_type=content_type)


@router.post("/maintenance/prune", response_model=PruneResponse, tags=["Maintenance"])
async def prune_history(max_age_days: int = Query(default=HISTORY_MAX_AGE_DAYS, ge=1, le=3650)):
    removed = await asyncio.to_thread(run_maintenance, None, max_age_days)
    return PruneResponse(max_age_days=max_age_days, samples_removed=removed)
