from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api.routes.auth import router as auth_router
from .api.routes.diagrams import router as diagrams_router
from .api.routes.summaries import router as summaries_router
from .api.routes.translations import router as translations_router
from .api.routes.usage import router as usage_router
from .core.config import get_settings
from .core.logging import configure_logging
from .db import dispose_engine, init_db
from .telemetry import configure_tracing, setup_prometheus


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()
    app = FastAPI(title=settings.project_name, version=__version__)

    allow_origins = settings.cors_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def _startup() -> None:
        await init_db()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await dispose_engine()

    @app.get("/healthz")
    def healthz() -> dict[str, str | bool]:
        return {"ok": True, "service": "api"}

    app.include_router(auth_router, prefix=settings.api_v1_prefix)
    app.include_router(summaries_router, prefix=settings.api_v1_prefix)
    app.include_router(translations_router, prefix=settings.api_v1_prefix)
    app.include_router(diagrams_router, prefix=settings.api_v1_prefix)
    app.include_router(usage_router, prefix=settings.api_v1_prefix)

    if settings.enable_prometheus_metrics:
        setup_prometheus(app)
    configure_tracing(app)

    return app


app = create_app()
