"""
FastAPI application entrypoint for the Colis Privé session gateway.
"""

from __future__ import annotations

from fastapi import FastAPI

from app.api.routes import router as api_router
from app.core.config import get_settings
from app.core.lifespan import create_lifespan
from app.core.logging import configure_logging


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Delivery Routing - Colis Privé Gateway",
        version="0.1.0",
        description="Session-managed access to Colis Privé tournées and packages.",
        lifespan=create_lifespan,
    )
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
