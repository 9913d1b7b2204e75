"""FastAPI dependencies for the objects created in the app lifespan."""

from fastapi import HTTPException, Request

from datadget.fetcher import WidgetFetcher
from datadget.scheduler import WidgetScheduler


def get_fetcher(request: Request) -> WidgetFetcher:
    fetcher = getattr(request.app.state, "fetcher", None)
    if fetcher is None:
        raise HTTPException(status_code=503, detail="Fetcher not initialised")
    return fetcher


def get_scheduler(request: Request) -> WidgetScheduler | None:
    """The running scheduler, or ``None`` when scheduling is disabled."""
    return getattr(request.app.state, "scheduler", None)
