"""Errors surfaced when a session token cannot be obtained."""

from __future__ import annotations

from typing import Sequence


class AuthError(Exception):
    """Base class for session acquisition failures."""


class UpstreamAuthFailedError(AuthError):
    """The courier platform rejected the login or could not be reached."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthTimeoutError(UpstreamAuthFailedError):
    """The login call did not complete within the configured timeout."""


class CredentialsNotConfiguredError(UpstreamAuthFailedError):
    """No secret is available to re-authenticate an operator."""


class ResponseUnparseableError(AuthError):
    """The login call succeeded but its body did not carry a usable token."""

    def __init__(self, message: str, *, available_fields: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.available_fields = tuple(available_fields)


__all__ = [
    "AuthError",
    "AuthTimeoutError",
    "CredentialsNotConfiguredError",
    "ResponseUnparseableError",
    "UpstreamAuthFailedError",
]
