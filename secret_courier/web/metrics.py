"""Prometheus metrics for the courier web service."""
import time

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

METRICS_PATH = "/metrics"

_REQUEST_COUNTER = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    labelnames=("service", "method", "path", "status"),
)
_REQUEST_LATENCY = Histogram(
    "http_request_latency_seconds",
    "Latency of HTTP requests in seconds",
    labelnames=("service", "method", "path"),
)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Count requests and their latency per route template."""

    def __init__(self, app: ASGIApp, *, service_name: str) -> None:
        super().__init__(app)
        self._service_name = service_name

    async def dispatch(self, request: Request, call_next):
        method = request.method.upper()
        start = time.perf_counter()
        status_code = "500"
        try:
            response = await call_next(request)
            status_code = str(response.status_code)
            return response
        finally:
            # Routing fills in scope["route"] while the request is handled
            route = request.scope.get("route")
            path_template = getattr(route, "path", request.url.path)
            _REQUEST_COUNTER.labels(self._service_name, method, path_template, status_code).inc()
            _REQUEST_LATENCY.labels(self._service_name, method, path_template).observe(time.perf_counter() - start)


def setup_metrics(app: FastAPI, *, service_name: str) -> None:
    """Attach the metrics middleware and ``GET /metrics``."""
    if getattr(app.state, "metrics_configured", False):
        return

    app.add_middleware(MetricsMiddleware, service_name=service_name)

    async def metrics_endpoint() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.add_api_route(METRICS_PATH, metrics_endpoint, methods=["GET"], include_in_schema=False, name="metrics")
    app.state.metrics_configured = True
