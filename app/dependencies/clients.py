"""
Factory functions to provide shared clients and services as FastAPI dependencies.

Each factory is cached so the credential cache and the orchestrator are built
once per process and shared by every request.
"""

from datetime import timedelta
from functools import lru_cache

from app.clients import ColisPriveAuthClient, ColisPriveTourneeClient
from app.core.config import get_settings
from app.services import (
    AuthOrchestrator,
    CredentialCache,
    EnvironmentCredentialProvider,
    TokenExtractor,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_credential_cache() -> CredentialCache:
    """Provide the process-wide session token cache."""
    settings = _settings()
    return CredentialCache(shard_count=settings.session_cache.shard_count)


@lru_cache()
def get_auth_client() -> ColisPriveAuthClient:
    """Create a singleton Colis Privé authentication client."""
    return ColisPriveAuthClient(_settings().courier)


@lru_cache()
def get_tournee_client() -> ColisPriveTourneeClient:
    """Create a singleton Colis Privé tournée client."""
    return ColisPriveTourneeClient(_settings().courier)


@lru_cache()
def get_token_extractor() -> TokenExtractor:
    """Provide the response probe chain used to find session tokens."""
    return TokenExtractor()


@lru_cache()
def get_auth_orchestrator() -> AuthOrchestrator:
    """Provide the session orchestrator shared by all request handlers."""
    settings = _settings()
    return AuthOrchestrator(
        cache=get_credential_cache(),
        backend=get_auth_client(),
        credential_provider=EnvironmentCredentialProvider(
            secret=settings.courier.operator_password
        ),
        extractor=get_token_extractor(),
        ttl_hours=settings.session_cache.ttl_hours,
        refresh_margin=timedelta(
            seconds=settings.session_cache.refresh_margin_seconds
        ),
        timeout_seconds=settings.courier.request_timeout_seconds,
    )


__all__ = [
    "get_auth_client",
    "get_auth_orchestrator",
    "get_credential_cache",
    "get_token_extractor",
    "get_tournee_client",
]
