"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_auth_client,
    get_auth_orchestrator,
    get_credential_cache,
    get_token_extractor,
    get_tournee_client,
)
from .config import get_courier_settings

__all__ = [
    "get_courier_settings",
    "get_auth_client",
    "get_auth_orchestrator",
    "get_credential_cache",
    "get_token_extractor",
    "get_tournee_client",
]
