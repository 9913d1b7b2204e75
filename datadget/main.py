import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from dg_common.observability import get_logger, init_observability, shutdown_tracing

from datadget import __version__, telemetry
from datadget.database import init_db
from datadget.fetcher import WidgetFetcher
from datadget.routes import analytics_router, health_router, widgets_router
from datadget.scheduler import WidgetScheduler

# Bootstrap logging + tracing + service-info in one call
init_observability("datadget-api", __version__)

logger = get_logger("datadget-api")

SCHEDULER_ENABLED = os.environ.get("SCHEDULER_ENABLED", "true").lower() == "true"


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database initialized")

    fetcher = WidgetFetcher()
    app.state.fetcher = fetcher
    app.state.scheduler = None

    if SCHEDULER_ENABLED:
        scheduler = WidgetScheduler(fetcher)
        await scheduler.init()
        app.state.scheduler = scheduler
    else:
        logger.info("Scheduler disabled (SCHEDULER_ENABLED=false)")

    yield

    if app.state.scheduler is not None:
        await app.state.scheduler.shutdown()
    await fetcher.aclose()

    # Flush remaining traces before shutdown
    shutdown_tracing()


app = FastAPI(
    title="Datadget Widget Data Service",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(widgets_router)
app.include_router(analytics_router)
app.include_router(health_router)

try:
    telemetry.init(app)
except Exception as e:
    logger.warning("Telemetry init skipped: %s", e)
