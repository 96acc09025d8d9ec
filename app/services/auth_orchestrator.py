"""
Hand out valid Colis Privé session tokens, re-authenticating when needed.

Request handlers ask for a token per account key. A fresh cached token is
returned without touching the network; otherwise a single login per key is
started and every concurrent caller for that key waits on it.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from datetime import timedelta
from typing import Any, Dict, Optional, Protocol

from app.models.session import AccountKey, OperatorCredentials, SessionToken, TokenGrant
from app.services.auth_errors import (
    AuthTimeoutError,
    CredentialsNotConfiguredError,
    ResponseUnparseableError,
    UpstreamAuthFailedError,
)
from app.services.credential_cache import Clock, CredentialCache, utc_now
from app.services.token_extractor import TokenExtractor, TokenNotFoundError

logger = logging.getLogger(__name__)


class AuthBackend(Protocol):
    """Performs the network exchange with the membership endpoint."""

    async def login(
        self, credentials: OperatorCredentials, *, validity_hours: int
    ) -> Any:
        ...


class CredentialProvider(Protocol):
    def credentials_for(self, key: AccountKey) -> OperatorCredentials:
        ...


class EnvironmentCredentialProvider:
    """Pair an account key with the operator secret from configuration."""

    def __init__(self, *, secret: Optional[str]) -> None:
        self._secret = secret

    def credentials_for(self, key: AccountKey) -> OperatorCredentials:
        if not self._secret:
            raise CredentialsNotConfiguredError(
                f"No operator secret configured to authenticate {key}."
            )
        return OperatorCredentials(
            carrier_account_id=key.carrier_account_id,
            operator_id=key.operator_id,
            secret=self._secret,
        )


class AuthOrchestrator:
    """Facade over the credential cache and the authentication backend."""

    def __init__(
        self,
        *,
        cache: CredentialCache,
        backend: AuthBackend,
        credential_provider: CredentialProvider,
        extractor: Optional[TokenExtractor] = None,
        ttl_hours: int = 24,
        refresh_margin: timedelta = timedelta(0),
        timeout_seconds: float = 30.0,
        clock: Clock = utc_now,
    ) -> None:
        self._cache = cache
        self._backend = backend
        self._credentials = credential_provider
        self._extractor = extractor or TokenExtractor()
        self._ttl_hours = ttl_hours
        self._refresh_margin = refresh_margin
        self._timeout = timeout_seconds
        self._clock = clock
        self._inflight: Dict[AccountKey, "asyncio.Task[SessionToken]"] = {}

    async def ensure_token(self, key: AccountKey) -> SessionToken:
        """Return a fresh token for ``key``, authenticating if necessary."""
        grant = await self.acquire(key)
        return grant.token

    async def acquire(self, key: AccountKey) -> TokenGrant:
        """Like :meth:`ensure_token`, but report whether a login happened."""
        self._cache.evict_expired()

        cached = self._cache.get(key)
        if cached is not None and self._is_usable(cached):
            logger.debug("Serving cached session token for %s", key)
            return TokenGrant(token=cached, minted=False)

        task = self._inflight.get(key)
        if task is None:
            reason = "expired" if cached is not None else "missing"
            logger.info("Session token for %s is %s; authenticating", key, reason)
            task = self._start_refresh(key, None)
        else:
            logger.debug("Joining in-flight authentication for %s", key)

        token = await asyncio.shield(task)
        return TokenGrant(token=token, minted=True)

    async def authenticate(self, credentials: OperatorCredentials) -> TokenGrant:
        """Log in with caller-supplied credentials and cache the result.

        An authentication already running for the same key is allowed to finish
        first so that only one login per key is ever in flight.
        """
        key = credentials.key
        while True:
            pending = self._inflight.get(key)
            if pending is None or pending.done():
                break
            await asyncio.wait({pending})

        logger.info("Explicit authentication requested for %s", key)
        token = await asyncio.shield(self._start_refresh(key, credentials))
        return TokenGrant(token=token, minted=True)

    def _is_usable(self, token: SessionToken) -> bool:
        return self._clock() + self._refresh_margin < token.expires_at

    def _start_refresh(
        self, key: AccountKey, credentials: Optional[OperatorCredentials]
    ) -> "asyncio.Task[SessionToken]":
        loop = asyncio.get_running_loop()
        task = loop.create_task(
            self._refresh(key, credentials), name=f"session-refresh:{key}"
        )
        self._inflight[key] = task
        task.add_done_callback(functools.partial(self._forget, key))
        return task

    def _forget(self, key: AccountKey, task: "asyncio.Task[SessionToken]") -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Failures are logged in _refresh; waiters may all have been cancelled.
        if not task.cancelled():
            task.exception()

    async def _refresh(
        self, key: AccountKey, credentials: Optional[OperatorCredentials]
    ) -> SessionToken:
        if credentials is None:
            credentials = self._credentials.credentials_for(key)

        try:
            payload = await asyncio.wait_for(
                self._backend.login(credentials, validity_hours=self._ttl_hours),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.warning(
                "Authentication for %s timed out after %.1fs", key, self._timeout
            )
            raise AuthTimeoutError(
                f"Authentication for {key} timed out after {self._timeout:.1f}s."
            ) from exc
        except AuthTimeoutError:
            logger.warning("Authentication for %s timed out upstream", key)
            raise
        except UpstreamAuthFailedError as exc:
            logger.error("Authentication rejected for %s: %s", key, exc)
            raise
        except ResponseUnparseableError as exc:
            logger.error("Unreadable authentication response for %s: %s", key, exc)
            raise

        try:
            value = self._extractor.extract(payload)
        except TokenNotFoundError as exc:
            logger.error(
                "Authentication response for %s carried no session token; "
                "top-level fields: %s",
                key,
                ", ".join(exc.available_fields) or "<none>",
            )
            raise ResponseUnparseableError(
                str(exc), available_fields=exc.available_fields
            ) from exc

        token = self._cache.put(key, value, self._ttl_hours)
        logger.info(
            "Cached session token for %s until %s", key, token.expires_at.isoformat()
        )
        return token


__all__ = [
    "AuthBackend",
    "AuthOrchestrator",
    "CredentialProvider",
    "EnvironmentCredentialProvider",
]
