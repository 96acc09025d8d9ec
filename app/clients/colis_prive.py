"""
Colis Privé web service clients.

``ColisPriveAuthClient`` is the authentication backend used by the session
orchestrator; ``ColisPriveTourneeClient`` fetches a driver's tournée once a
session token is known.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.core.config import CourierSettings
from app.models.session import OperatorCredentials
from app.services.auth_errors import (
    AuthTimeoutError,
    ResponseUnparseableError,
    UpstreamAuthFailedError,
)
from app.utils.http import RetryConfig, request_with_retry
from app.utils.payload import decode_if_encoded

logger = logging.getLogger(__name__)

_SNIPPET_LENGTH = 200


def _snippet(text: str) -> str:
    text = text.strip()
    if len(text) <= _SNIPPET_LENGTH:
        return text
    return text[:_SNIPPET_LENGTH] + "..."


class TourneeFetchError(Exception):
    """Raised when the tournée service cannot be reached or refuses a call."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ColisPriveAuthClient:
    """Exchange operator credentials for a raw membership login response."""

    LOGIN_PATH = "/api/auth/login/Membership"

    def __init__(
        self,
        settings: CourierSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    async def login(
        self, credentials: OperatorCredentials, *, validity_hours: int
    ) -> Any:
        """
        Post the membership login and return the decoded JSON body.

        The body shape varies between deployments; interpreting it is left to
        the token extractor.
        """
        if not (
            credentials.operator_id
            and credentials.carrier_account_id
            and credentials.secret
        ):
            raise UpstreamAuthFailedError(
                "Incomplete credentials: username, password and societe are required."
            )

        url = f"{self._settings.auth_url}{self.LOGIN_PATH}"
        payload = {
            "login": credentials.login,
            "password": credentials.secret,
            "societe": credentials.carrier_account_id,
            "commun": {"dureeTokenInHour": validity_hours},
        }
        logger.info("Authenticating %s against %s", credentials.login, url)

        try:
            async with httpx.AsyncClient(
                timeout=self._settings.request_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(url, json=payload)
        except httpx.TimeoutException as exc:
            raise AuthTimeoutError(
                f"Authentication request timed out after "
                f"{self._settings.request_timeout_seconds:.0f}s."
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamAuthFailedError(
                f"Authentication request failed: {exc.__class__.__name__}: {exc}"
            ) from exc

        if not response.is_success:
            raise UpstreamAuthFailedError(
                f"Authentication rejected with HTTP {response.status_code}: "
                f"{_snippet(response.text)}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise ResponseUnparseableError(
                "Authentication response is not valid JSON."
            ) from exc


class ColisPriveTourneeClient:
    """Fetch the tournée of a driver for a given day."""

    TOURNEE_PATH = (
        "/WS-TourneeColis/api/getTourneeByMatriculeDistributeurDateDebut_POST"
    )

    def __init__(
        self,
        settings: CourierSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        backoff_seconds: float = 1.0,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._retry = RetryConfig(
            attempts=settings.tournee_attempts, backoff_seconds=backoff_seconds
        )

    async def fetch_tournee(self, token: str, *, matricule: str, date: str) -> str:
        """
        Return the tournée body as text, base64-decoded when it was wrapped.

        ``matricule`` is the full ``<societe>_<username>`` identifier.
        """
        url = f"{self._settings.tournee_url}{self.TOURNEE_PATH}"
        payload = {"Matricule": matricule, "DateDebut": date}
        headers = {"SsoHopps": token}
        logger.info("Fetching tournée for %s on %s", matricule, date)

        try:
            async with httpx.AsyncClient(
                timeout=self._settings.request_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await request_with_retry(
                    client.post,
                    url,
                    json=payload,
                    headers=headers,
                    retry_config=self._retry,
                )
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            raise TourneeFetchError(
                f"Tournée request rejected with HTTP {status_code}: "
                f"{_snippet(exc.response.text)}",
                status_code=status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise TourneeFetchError(
                f"Tournée request failed: {exc.__class__.__name__}: {exc}"
            ) from exc

        body = response.text
        logger.info("Received tournée for %s (%d bytes)", matricule, len(body))
        return decode_if_encoded(body)


__all__ = ["ColisPriveAuthClient", "ColisPriveTourneeClient", "TourneeFetchError"]
