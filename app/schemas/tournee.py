"""
Pydantic models for tournée and package retrieval.
"""

from __future__ import annotations

import datetime as dt
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class TourneeRequest(BaseModel):
    """Fetch the raw tournée of an operator."""

    username: str = Field(..., min_length=1, description="Operator identifier.")
    societe: str = Field(..., min_length=1, description="Carrier account code.")
    matricule: str = Field(
        ..., min_length=1, description="Driver matricule echoed in the metadata."
    )
    date: Optional[dt.date] = Field(
        None, description="Delivery day; defaults to today (UTC)."
    )


class TourneeMetadata(BaseModel):
    matricule: str
    societe: str
    date: dt.date
    token_source: Literal["cache", "authenticated"]


class TourneeResponse(BaseModel):
    success: bool = True
    message: str
    data: str = Field(..., description="Tournée body, base64-decoded when wrapped.")
    metadata: TourneeMetadata
    timestamp: dt.datetime


class PackagesRequest(BaseModel):
    """List the parcels of an operator's tournée."""

    matricule: str = Field(
        ..., min_length=1, description="Operator identifier without societe prefix."
    )
    societe: Optional[str] = Field(
        None, description="Carrier account code; defaults to the configured one."
    )
    date: Optional[dt.date] = Field(
        None, description="Delivery day; defaults to today (UTC)."
    )


class PackageData(BaseModel):
    """One parcel stop extracted from ``LstLieuArticle``."""

    id: str
    tracking_number: str
    recipient_name: str
    address: str
    status: str
    instructions: str
    phone: str
    priority: str


class PackagesResponse(BaseModel):
    success: bool = True
    message: str
    packages: Optional[List[PackageData]] = None


__all__ = [
    "PackageData",
    "PackagesRequest",
    "PackagesResponse",
    "TourneeMetadata",
    "TourneeRequest",
    "TourneeResponse",
]
