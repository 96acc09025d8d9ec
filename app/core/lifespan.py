"""Application lifespan: start and stop the session cache sweeper."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.core.config import get_settings
from app.dependencies import get_credential_cache
from app.services import CredentialCache

logger = logging.getLogger(__name__)


async def run_cache_sweeper(cache: CredentialCache, *, interval_seconds: float) -> None:
    """Evict expired session tokens every ``interval_seconds`` until cancelled.

    Eviction also happens before each lookup; this loop bounds memory for
    accounts that never come back.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        cache.evict_expired()


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    interval = settings.session_cache.sweep_interval_seconds

    app.state.cache_sweeper = asyncio.create_task(
        run_cache_sweeper(get_credential_cache(), interval_seconds=interval),
        name="session-cache-sweeper",
    )
    logger.info("Session cache sweeper started (every %ds)", interval)

    yield

    app.state.cache_sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await app.state.cache_sweeper
    logger.info("Session cache sweeper stopped")


__all__ = ["create_lifespan", "run_cache_sweeper"]
