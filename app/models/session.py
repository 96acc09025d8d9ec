"""
Domain models for Colis Privé session tokens.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class AccountKey:
    """Identifies one operator within one carrier account (societe)."""

    operator_id: str
    carrier_account_id: str

    def __str__(self) -> str:
        return f"{self.carrier_account_id}:{self.operator_id}"


@dataclass(frozen=True, slots=True)
class SessionToken:
    """An SsoHopps credential together with its validity window."""

    value: str = field(repr=False)
    issued_at: datetime
    expires_at: datetime

    def __post_init__(self) -> None:
        if self.expires_at <= self.issued_at:
            raise ValueError(
                f"Session token expires at {self.expires_at.isoformat()}, "
                f"not after its issue time {self.issued_at.isoformat()}."
            )

    def is_fresh(self, now: datetime) -> bool:
        return now < self.expires_at


@dataclass(frozen=True, slots=True)
class OperatorCredentials:
    """Login material for the membership endpoint. Never cached."""

    carrier_account_id: str
    operator_id: str
    secret: str = field(repr=False)

    @property
    def key(self) -> AccountKey:
        return AccountKey(
            operator_id=self.operator_id,
            carrier_account_id=self.carrier_account_id,
        )

    @property
    def login(self) -> str:
        return f"{self.carrier_account_id}_{self.operator_id}"


@dataclass(frozen=True, slots=True)
class TokenGrant:
    """A usable token and whether it was minted by this request."""

    token: SessionToken
    minted: bool


__all__ = ["AccountKey", "OperatorCredentials", "SessionToken", "TokenGrant"]
