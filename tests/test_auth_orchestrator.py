from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Any

import pytest

from app.models.session import AccountKey, OperatorCredentials
from app.services.auth_errors import (
    AuthTimeoutError,
    CredentialsNotConfiguredError,
    ResponseUnparseableError,
    UpstreamAuthFailedError,
)
from app.services.auth_orchestrator import AuthOrchestrator, EnvironmentCredentialProvider
from app.services.credential_cache import CredentialCache

KEY = AccountKey(operator_id="U1", carrier_account_id="S1")


class ScriptedBackend:
    """Auth backend returning queued responses, optionally held behind a gate."""

    def __init__(self, *responses: Any, blocked: set[str] | None = None) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[OperatorCredentials, int]] = []
        self.blocked = blocked or set()
        self.release = asyncio.Event()
        self.error: Exception | None = None

    async def login(self, credentials: OperatorCredentials, *, validity_hours: int) -> Any:
        self.calls.append((credentials, validity_hours))
        if credentials.operator_id in self.blocked:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


class SlowBackend:
    async def login(self, credentials: OperatorCredentials, *, validity_hours: int) -> Any:
        await asyncio.sleep(5)
        return {"SsoHopps": "too-late"}


def _orchestrator(clock, backend, *, secret: str | None = "pw", **kwargs) -> AuthOrchestrator:
    return AuthOrchestrator(
        cache=kwargs.pop("cache", None) or CredentialCache(clock=clock),
        backend=backend,
        credential_provider=EnvironmentCredentialProvider(secret=secret),
        clock=clock,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_token_is_cached_for_its_ttl_then_refreshed(clock) -> None:
    backend = ScriptedBackend({"SsoHopps": "abc123"}, {"SsoHopps": "def456"})
    orchestrator = _orchestrator(clock, backend, ttl_hours=24)

    first = await orchestrator.ensure_token(KEY)
    assert first.value == "abc123"
    assert len(backend.calls) == 1

    clock.advance(hours=1)
    second = await orchestrator.ensure_token(KEY)
    assert second.value == "abc123"
    assert len(backend.calls) == 1

    clock.advance(hours=24)
    third = await orchestrator.ensure_token(KEY)
    assert third.value == "def456"
    assert len(backend.calls) == 2


@pytest.mark.asyncio
async def test_acquire_reports_whether_a_login_happened(clock) -> None:
    orchestrator = _orchestrator(clock, ScriptedBackend({"token": "abc"}))

    minted = await orchestrator.acquire(KEY)
    cached = await orchestrator.acquire(KEY)

    assert minted.minted is True
    assert cached.minted is False
    assert cached.token == minted.token


@pytest.mark.asyncio
async def test_backend_receives_configured_credentials_and_ttl(clock) -> None:
    backend = ScriptedBackend({"SsoHopps": "abc"})
    orchestrator = _orchestrator(clock, backend, secret="operator-pw", ttl_hours=12)

    token = await orchestrator.ensure_token(KEY)

    credentials, validity_hours = backend.calls[0]
    assert credentials.login == "S1_U1"
    assert credentials.secret == "operator-pw"
    assert validity_hours == 12
    assert token.expires_at - token.issued_at == timedelta(hours=12)


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_login(clock) -> None:
    backend = ScriptedBackend({"SsoHopps": "shared"}, blocked={"U1"})
    orchestrator = _orchestrator(clock, backend)

    waiters = [asyncio.create_task(orchestrator.acquire(KEY)) for _ in range(10)]
    await asyncio.sleep(0)
    backend.release.set()
    grants = await asyncio.gather(*waiters)

    assert len(backend.calls) == 1
    assert {grant.token.value for grant in grants} == {"shared"}
    assert len({id(grant.token) for grant in grants}) == 1


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_failure(clock) -> None:
    backend = ScriptedBackend({"SsoHopps": "unused"}, blocked={"U1"})
    backend.error = UpstreamAuthFailedError("bad password", status_code=401)
    orchestrator = _orchestrator(clock, backend)

    waiters = [asyncio.create_task(orchestrator.ensure_token(KEY)) for _ in range(5)]
    await asyncio.sleep(0)
    backend.release.set()
    results = await asyncio.gather(*waiters, return_exceptions=True)

    assert len(backend.calls) == 1
    assert all(isinstance(result, UpstreamAuthFailedError) for result in results)


@pytest.mark.asyncio
async def test_other_keys_are_not_blocked_by_a_pending_login(clock) -> None:
    backend = ScriptedBackend({"SsoHopps": "tok"}, blocked={"slow-operator"})
    orchestrator = _orchestrator(clock, backend)
    slow_key = AccountKey(operator_id="slow-operator", carrier_account_id="S1")

    pending = asyncio.create_task(orchestrator.ensure_token(slow_key))
    await asyncio.sleep(0)

    token = await asyncio.wait_for(orchestrator.ensure_token(KEY), timeout=1)
    assert token.value == "tok"
    assert not pending.done()

    backend.release.set()
    assert (await pending).value == "tok"
    assert len(backend.calls) == 2


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_cancel_shared_login(clock) -> None:
    backend = ScriptedBackend({"SsoHopps": "survivor"}, blocked={"U1"})
    orchestrator = _orchestrator(clock, backend)

    first = asyncio.create_task(orchestrator.ensure_token(KEY))
    second = asyncio.create_task(orchestrator.ensure_token(KEY))
    await asyncio.sleep(0)
    first.cancel()
    backend.release.set()

    assert (await second).value == "survivor"
    with pytest.raises(asyncio.CancelledError):
        await first
    assert len(backend.calls) == 1


@pytest.mark.asyncio
async def test_failed_login_is_not_cached_or_retried(clock) -> None:
    backend = ScriptedBackend({"SsoHopps": "abc"})
    backend.error = UpstreamAuthFailedError("account disabled", status_code=403)
    cache = CredentialCache(clock=clock)
    orchestrator = _orchestrator(clock, backend, cache=cache)

    with pytest.raises(UpstreamAuthFailedError):
        await orchestrator.ensure_token(KEY)
    assert len(backend.calls) == 1
    assert cache.get(KEY) is None

    backend.error = None
    assert (await orchestrator.ensure_token(KEY)).value == "abc"
    assert len(backend.calls) == 2


@pytest.mark.asyncio
async def test_unknown_response_shape_is_unparseable(clock) -> None:
    backend = ScriptedBackend({"isAuthentif": True, "Shortcut": {"x": 1}})
    orchestrator = _orchestrator(clock, backend)

    with pytest.raises(ResponseUnparseableError) as exc_info:
        await orchestrator.ensure_token(KEY)

    assert exc_info.value.available_fields == ("Shortcut", "isAuthentif")
    assert not isinstance(exc_info.value, UpstreamAuthFailedError)


@pytest.mark.asyncio
async def test_slow_backend_times_out(clock) -> None:
    orchestrator = _orchestrator(clock, SlowBackend(), timeout_seconds=0.05)

    with pytest.raises(AuthTimeoutError) as exc_info:
        await orchestrator.ensure_token(KEY)

    assert isinstance(exc_info.value, UpstreamAuthFailedError)


@pytest.mark.asyncio
async def test_missing_secret_fails_without_calling_backend(clock) -> None:
    backend = ScriptedBackend({"SsoHopps": "abc"})
    orchestrator = _orchestrator(clock, backend, secret=None)

    with pytest.raises(CredentialsNotConfiguredError):
        await orchestrator.ensure_token(KEY)
    assert backend.calls == []


@pytest.mark.asyncio
async def test_stale_entry_is_never_served(clock) -> None:
    cache = CredentialCache(clock=clock)
    cache.put(KEY, "old", ttl_hours=1)
    clock.advance(hours=1)
    backend = ScriptedBackend({"SsoHopps": "new"})
    orchestrator = _orchestrator(clock, backend, cache=cache)

    assert (await orchestrator.ensure_token(KEY)).value == "new"
    assert len(backend.calls) == 1


@pytest.mark.asyncio
async def test_refresh_margin_renews_tokens_close_to_expiry(clock) -> None:
    backend = ScriptedBackend({"SsoHopps": "first"}, {"SsoHopps": "second"})
    orchestrator = _orchestrator(
        clock, backend, ttl_hours=1, refresh_margin=timedelta(minutes=10)
    )

    await orchestrator.ensure_token(KEY)
    clock.advance(minutes=49)
    assert (await orchestrator.ensure_token(KEY)).value == "first"

    clock.advance(minutes=2)
    assert (await orchestrator.ensure_token(KEY)).value == "second"
    assert len(backend.calls) == 2


@pytest.mark.asyncio
async def test_lookup_evicts_expired_entries(clock) -> None:
    cache = CredentialCache(clock=clock)
    abandoned = AccountKey(operator_id="gone", carrier_account_id="S1")
    cache.put(abandoned, "old", ttl_hours=1)
    clock.advance(hours=2)
    orchestrator = _orchestrator(clock, ScriptedBackend({"SsoHopps": "abc"}), cache=cache)

    await orchestrator.ensure_token(KEY)

    assert cache.get(abandoned) is None


@pytest.mark.asyncio
async def test_explicit_authentication_overwrites_cached_token(clock) -> None:
    backend = ScriptedBackend({"SsoHopps": "auto"}, {"SsoHopps": "explicit"})
    orchestrator = _orchestrator(clock, backend)
    await orchestrator.ensure_token(KEY)

    credentials = OperatorCredentials(
        carrier_account_id="S1", operator_id="U1", secret="typed-by-user"
    )
    grant = await orchestrator.authenticate(credentials)

    assert grant.minted is True
    assert grant.token.value == "explicit"
    assert backend.calls[-1][0].secret == "typed-by-user"
    assert (await orchestrator.ensure_token(KEY)).value == "explicit"
    assert len(backend.calls) == 2


@pytest.mark.asyncio
async def test_explicit_authentication_waits_for_pending_login(clock) -> None:
    backend = ScriptedBackend({"SsoHopps": "auto"}, {"SsoHopps": "explicit"}, blocked={"U1"})
    orchestrator = _orchestrator(clock, backend)

    automatic = asyncio.create_task(orchestrator.ensure_token(KEY))
    await asyncio.sleep(0)
    explicit = asyncio.create_task(
        orchestrator.authenticate(
            OperatorCredentials(carrier_account_id="S1", operator_id="U1", secret="pw")
        )
    )
    for _ in range(5):
        await asyncio.sleep(0)
    assert len(backend.calls) == 1

    backend.release.set()
    assert (await automatic).value == "auto"
    assert (await explicit).token.value == "explicit"
    assert len(backend.calls) == 2
    assert (await orchestrator.ensure_token(KEY)).value == "explicit"
