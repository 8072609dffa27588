"""FastAPI app bootstrap for sms_ledger."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from sms_ledger.api.dependencies import get_scheduler
from sms_ledger.api.error_handlers import register_error_handlers
from sms_ledger.api.routes import v1_router
from sms_ledger.core.logging import configure_logging
from sms_ledger.core.settings import get_settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run background sync for the lifetime of the app when enabled."""

    settings = get_settings()
    scheduler = None
    if settings.background_sync_enabled:
        scheduler = app.dependency_overrides.get(get_scheduler, get_scheduler)()
        scheduler.start()
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.stop(wait=True, timeout=settings.inference_timeout_seconds)


def create_app() -> FastAPI:
    """Create and configure FastAPI application instance."""

    configure_logging(get_settings().log_level)
    app = FastAPI(
        title="SMS Ledger API",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.get("/health/live", include_in_schema=False)
    def health_live() -> dict[str, str]:
        return {"status": "alive"}

    register_error_handlers(app)
    app.include_router(v1_router)
    return app
