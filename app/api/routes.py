"""
FastAPI routes for the Colis Privé session gateway.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException

from app.clients import TourneeFetchError
from app.dependencies import (
    get_auth_orchestrator,
    get_courier_settings,
    get_tournee_client,
)
from app.models.session import AccountKey, OperatorCredentials, TokenGrant
from app.schemas import (
    AuthenticationDetails,
    ColisPriveAuthRequest,
    ColisPriveAuthResponse,
    CredentialsUsed,
    PackagesRequest,
    PackagesResponse,
    TourneeMetadata,
    TourneeRequest,
    TourneeResponse,
)
from app.services import (
    AuthError,
    ResponseUnparseableError,
    UpstreamAuthFailedError,
    completed_tournee_code,
    extract_packages,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _auth_http_error(exc: AuthError) -> HTTPException:
    """Translate a session acquisition failure into an HTTP error."""
    if isinstance(exc, ResponseUnparseableError):
        return HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail="Colis Privé authentication response could not be interpreted.",
        )
    if isinstance(exc, UpstreamAuthFailedError):
        return HTTPException(
            status_code=HTTPStatus.UNAUTHORIZED,
            detail=f"Colis Privé authentication failed: {exc}",
        )
    return HTTPException(
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        detail="Colis Privé authentication failed unexpectedly.",
    )


async def _acquire_token(orchestrator: Any, key: AccountKey) -> TokenGrant:
    try:
        return await orchestrator.acquire(key)
    except AuthError as exc:
        logger.warning("No session token for %s: %s", key, exc)
        raise _auth_http_error(exc) from exc


async def _fetch_tournee(
    tournee_client: Any, grant: TokenGrant, *, matricule: str, day: date
) -> str:
    try:
        return await tournee_client.fetch_tournee(
            grant.token.value, matricule=matricule, date=day.isoformat()
        )
    except TourneeFetchError as exc:
        logger.error("Tournée fetch for %s failed: %s", matricule, exc)
        raise HTTPException(
            status_code=HTTPStatus.BAD_GATEWAY,
            detail=f"Colis Privé tournée service error: {exc}",
        ) from exc


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.post(
    "/colis-prive/auth",
    response_model=ColisPriveAuthResponse,
    status_code=HTTPStatus.OK,
)
async def authenticate_colis_prive(
    payload: ColisPriveAuthRequest,
    orchestrator: Annotated[Any, Depends(get_auth_orchestrator)],
) -> ColisPriveAuthResponse:
    """Log an operator in and keep the resulting session for later calls."""
    credentials = OperatorCredentials(
        carrier_account_id=payload.societe,
        operator_id=payload.username,
        secret=payload.password,
    )
    try:
        grant = await orchestrator.authenticate(credentials)
    except AuthError as exc:
        logger.warning("Explicit login for %s failed: %s", credentials.key, exc)
        raise _auth_http_error(exc) from exc

    return ColisPriveAuthResponse(
        authentication=AuthenticationDetails(
            token=grant.token.value,
            matricule=payload.username,
            message="Authenticated with Colis Privé.",
        ),
        credentials_used=CredentialsUsed(
            username=payload.username, societe=payload.societe
        ),
        timestamp=datetime.now(timezone.utc),
    )


@router.post(
    "/colis-prive/tournee",
    response_model=TourneeResponse,
    status_code=HTTPStatus.OK,
)
async def get_tournee(
    payload: TourneeRequest,
    orchestrator: Annotated[Any, Depends(get_auth_orchestrator)],
    tournee_client: Annotated[Any, Depends(get_tournee_client)],
) -> TourneeResponse:
    """Return the raw tournée document for an operator."""
    key = AccountKey(operator_id=payload.username, carrier_account_id=payload.societe)
    grant = await _acquire_token(orchestrator, key)

    day = payload.date or _today()
    data = await _fetch_tournee(
        tournee_client,
        grant,
        matricule=f"{payload.societe}_{payload.username}",
        day=day,
    )

    return TourneeResponse(
        message="Tournée retrieved from Colis Privé.",
        data=data,
        metadata=TourneeMetadata(
            matricule=payload.matricule,
            societe=payload.societe,
            date=day,
            token_source="authenticated" if grant.minted else "cache",
        ),
        timestamp=datetime.now(timezone.utc),
    )


@router.post(
    "/colis-prive/packages",
    response_model=PackagesResponse,
    status_code=HTTPStatus.OK,
)
async def get_packages(
    payload: PackagesRequest,
    orchestrator: Annotated[Any, Depends(get_auth_orchestrator)],
    tournee_client: Annotated[Any, Depends(get_tournee_client)],
    courier_settings: Annotated[Any, Depends(get_courier_settings)],
) -> PackagesResponse:
    """List the parcels of an operator's tournée."""
    societe = payload.societe or courier_settings.default_societe
    key = AccountKey(operator_id=payload.matricule, carrier_account_id=societe)
    grant = await _acquire_token(orchestrator, key)

    day = payload.date or _today()
    body = await _fetch_tournee(
        tournee_client,
        grant,
        matricule=f"{societe}_{payload.matricule}",
        day=day,
    )
    try:
        tournee = json.loads(body)
    except ValueError as exc:
        logger.error("Tournée for %s is not valid JSON (%d bytes)", key, len(body))
        raise HTTPException(
            status_code=HTTPStatus.BAD_GATEWAY,
            detail="Colis Privé returned an unreadable tournée.",
        ) from exc

    packages = extract_packages(tournee)
    logger.info("Extracted %d package(s) for %s", len(packages), key)

    if not packages:
        code = completed_tournee_code(tournee)
        if code is not None:
            return PackagesResponse(
                message=f"Tournée {code} completed; no pending packages.",
            )

    return PackagesResponse(
        message=f"Retrieved {len(packages)} package(s).",
        packages=packages,
    )
