"""Schemas for the Colis Privé login endpoint."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ColisPriveAuthRequest(BaseModel):
    """Operator credentials posted by the mobile app."""

    username: str = Field(..., min_length=1, description="Operator identifier.")
    password: str = Field(..., min_length=1, description="Operator password.")
    societe: str = Field(..., min_length=1, description="Carrier account code.")


class AuthenticationDetails(BaseModel):
    token: str
    matricule: str
    message: str


class CredentialsUsed(BaseModel):
    username: str
    societe: str


class ColisPriveAuthResponse(BaseModel):
    """Successful login summary. The password is never echoed back."""

    success: bool = True
    authentication: AuthenticationDetails
    credentials_used: CredentialsUsed
    timestamp: datetime


__all__ = [
    "AuthenticationDetails",
    "ColisPriveAuthRequest",
    "ColisPriveAuthResponse",
    "CredentialsUsed",
]
