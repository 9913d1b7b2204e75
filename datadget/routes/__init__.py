from .widgets import router as widgets_router
from .analytics import router as analytics_router
from .health import router as health_router

__all__ = ["widgets_router", "analytics_router", "health_router"]
