"""
Starlette middleware counting HTTP requests per route.

Requests are labelled by the matched route template (``/widgets/{widget_id}``)
rather than the raw path, so per-widget URLs do not explode label
cardinality. Unmatched requests fall back to the raw path.
"""

from prometheus_client import Counter
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


def _route_label(request: Request) -> str:
    route = request.scope.get("route")
    template = getattr(route, "path", None)
    return template or request.url.path


class MetricsMiddleware(BaseHTTPMiddleware):
    """Increment a ``["method", "path", "status"]`` Counter per request.

    Args:
        app: The ASGI application.
        counter: The labelled request counter.
        ignored_paths: Paths that are never counted, e.g. ``{"/metrics"}``.
    """

    def __init__(self, app, counter: Counter, ignored_paths: set[str] | None = None):
        super().__init__(app)
        self.counter = counter
        self.ignored_paths = ignored_paths or set()

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        if request.url.path not in self.ignored_paths:
            self.counter.labels(
                method=request.method,
                path=_route_label(request),
                status=response.status_code,
            ).inc()

        return response
