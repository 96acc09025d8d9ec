"""
Locate the SsoHopps session token inside an authentication response.

The membership endpoint does not document where the token lives and different
deployments have returned it under different names and nesting depths. Each
known location is a probe; probes run in a fixed order and the first one that
yields a non-empty string wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

Probe = Callable[[Any], Optional[str]]


class ExtractionError(Exception):
    """Base error for responses the extractor cannot interpret."""


class TokenNotFoundError(ExtractionError):
    """Raised when no probe resolves to a token.

    Only the top-level field names are kept, never their values.
    """

    def __init__(self, available_fields: Sequence[str]) -> None:
        self.available_fields = tuple(sorted(available_fields))
        listed = ", ".join(self.available_fields) or "<none>"
        super().__init__(
            f"Session token not found in response; top-level fields: {listed}"
        )


def _as_token(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None


@dataclass(frozen=True)
class FieldProbe:
    """Follow a path of mapping keys and read a string at the end."""

    path: tuple[str, ...]

    def __call__(self, payload: Any) -> Optional[str]:
        node = payload
        for name in self.path:
            if not isinstance(node, Mapping):
                return None
            node = node.get(name)
        return _as_token(node)

    @property
    def name(self) -> str:
        return ".".join(self.path)


@dataclass(frozen=True)
class CredentialListProbe:
    """Read ``item_field`` from the first record of a credential array."""

    path: tuple[str, ...]
    item_field: str = "valeur"

    def __call__(self, payload: Any) -> Optional[str]:
        node = payload
        for name in self.path:
            if not isinstance(node, Mapping):
                return None
            node = node.get(name)
        if not isinstance(node, list) or not node:
            return None
        first = node[0]
        if not isinstance(first, Mapping):
            return None
        return _as_token(first.get(self.item_field))

    @property
    def name(self) -> str:
        return ".".join(self.path) + f"[0].{self.item_field}"


DEFAULT_PROBES: tuple[Probe, ...] = (
    FieldProbe(("SsoHopps",)),
    FieldProbe(("ssoHopps",)),
    FieldProbe(("token",)),
    FieldProbe(("Token",)),
    FieldProbe(("access_token",)),
    FieldProbe(("accessToken",)),
    FieldProbe(("tokens", "SsoHopps")),
    FieldProbe(("shortToken", "SsoHopps")),
    CredentialListProbe(("habilitationAD", "SsoHopps")),
)


class TokenExtractor:
    """Apply probes in priority order to a decoded JSON response."""

    def __init__(self, probes: Sequence[Probe] = DEFAULT_PROBES) -> None:
        self._probes = tuple(probes)

    def extract(self, payload: Any) -> str:
        for probe in self._probes:
            token = probe(payload)
            if token is not None:
                logger.debug(
                    "Session token located via %s", getattr(probe, "name", probe)
                )
                return token
        fields = list(payload.keys()) if isinstance(payload, Mapping) else []
        raise TokenNotFoundError([str(field) for field in fields])


__all__ = [
    "CredentialListProbe",
    "DEFAULT_PROBES",
    "ExtractionError",
    "FieldProbe",
    "TokenExtractor",
    "TokenNotFoundError",
]
