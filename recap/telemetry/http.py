"""Request metrics middleware and the scrape endpoint."""

from __future__ import annotations

import re
import time

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.config import get_settings
from .metrics import HTTP_LATENCY, HTTP_REQUESTS

_ID_SEGMENT = re.compile(r"/[0-9a-fA-F-]{32,36}(?=/|$)")


def normalise_path(path: str) -> str:
    """Replace summary ids with ``{id}`` so raw paths keep a bounded label set."""

    return _ID_SEGMENT.sub("/{id}", path) or "/"


def route_label(scope: Scope) -> str:
    route = scope.get("route")
    template = getattr(route, "path_format", None) or getattr(route, "path", None)
    if template:
        return template
    return normalise_path(scope.get("path", ""))


class RequestMetricsMiddleware:
    """Pure ASGI middleware counting requests and timing them per route."""

    def __init__(self, app: ASGIApp, *, skip_prefix: str) -> None:
        self.app = app
        self.skip_prefix = skip_prefix

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["path"].startswith(self.skip_prefix):
            await self.app(scope, receive, send)
            return

        status_code = 500
        start = time.perf_counter()

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            route = route_label(scope)
            method = scope["method"]
            HTTP_REQUESTS.labels(method=method, route=route, status=str(status_code)).inc()
            HTTP_LATENCY.labels(method=method, route=route).observe(time.perf_counter() - start)


def setup_prometheus(app: FastAPI) -> None:
    """Install request metrics and serve them at the configured path."""

    metrics_path = get_settings().prometheus_metrics_path
    app.add_middleware(RequestMetricsMiddleware, skip_prefix=metrics_path)

    @app.get(metrics_path, include_in_schema=False)
    async def prometheus_metrics() -> Response:
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
