"""Process-local cache of SsoHopps session tokens keyed by account."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from app.models.session import AccountKey, SessionToken

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _Shard:
    __slots__ = ("lock", "entries")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.entries: Dict[AccountKey, SessionToken] = {}


class CredentialCache:
    """In-memory token store split into independently locked shards.

    Each entry is an immutable ``SessionToken`` replaced as a whole, so readers
    never observe a token string paired with another token's timestamps. Locks
    are held only around dict operations.

    ``get`` does not judge freshness; callers compare ``expires_at`` against
    their own notion of "now", possibly with a safety margin.
    """

    def __init__(self, *, shard_count: int = 16, clock: Clock = utc_now) -> None:
        if shard_count < 1:
            raise ValueError("Credential cache needs at least one shard.")
        self._shards: List[_Shard] = [_Shard() for _ in range(shard_count)]
        self._clock = clock

    def _shard_for(self, key: AccountKey) -> _Shard:
        return self._shards[hash(key) % len(self._shards)]

    def get(self, key: AccountKey) -> Optional[SessionToken]:
        shard = self._shard_for(key)
        with shard.lock:
            return shard.entries.get(key)

    def put(self, key: AccountKey, value: str, ttl_hours: float) -> SessionToken:
        """Store ``value`` for ``key`` valid for ``ttl_hours`` from now.

        Any existing entry for the key is replaced.
        """
        issued_at = self._clock()
        token = SessionToken(
            value=value,
            issued_at=issued_at,
            expires_at=issued_at + timedelta(hours=ttl_hours),
        )
        shard = self._shard_for(key)
        with shard.lock:
            shard.entries[key] = token
        return token

    def evict_expired(self) -> int:
        """Drop every entry that is stale now; return how many were removed."""
        now = self._clock()
        removed = 0
        for shard in self._shards:
            with shard.lock:
                stale = [
                    key
                    for key, token in shard.entries.items()
                    if not token.is_fresh(now)
                ]
                for key in stale:
                    del shard.entries[key]
            removed += len(stale)
        if removed:
            logger.info("Evicted %d expired session token(s)", removed)
        return removed

    def __len__(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.entries)
        return total


__all__ = ["Clock", "CredentialCache", "utc_now"]
