"""Public schema exports."""

from .auth import (
    AuthenticationDetails,
    ColisPriveAuthRequest,
    ColisPriveAuthResponse,
    CredentialsUsed,
)
from .tournee import (
    PackageData,
    PackagesRequest,
    PackagesResponse,
    TourneeMetadata,
    TourneeRequest,
    TourneeResponse,
)

__all__ = [
    "AuthenticationDetails",
    "ColisPriveAuthRequest",
    "ColisPriveAuthResponse",
    "CredentialsUsed",
    "PackageData",
    "PackagesRequest",
    "PackagesResponse",
    "TourneeMetadata",
    "TourneeRequest",
    "TourneeResponse",
]
