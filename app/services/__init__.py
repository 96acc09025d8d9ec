"""Service layer exports."""

from .auth_errors import (
    AuthError,
    AuthTimeoutError,
    CredentialsNotConfiguredError,
    ResponseUnparseableError,
    UpstreamAuthFailedError,
)
from .auth_orchestrator import (
    AuthBackend,
    AuthOrchestrator,
    CredentialProvider,
    EnvironmentCredentialProvider,
)
from .credential_cache import CredentialCache
from .packages import completed_tournee_code, extract_packages
from .token_extractor import ExtractionError, TokenExtractor, TokenNotFoundError

__all__ = [
    "AuthBackend",
    "AuthError",
    "AuthOrchestrator",
    "AuthTimeoutError",
    "CredentialCache",
    "CredentialProvider",
    "CredentialsNotConfiguredError",
    "EnvironmentCredentialProvider",
    "ExtractionError",
    "ResponseUnparseableError",
    "TokenExtractor",
    "TokenNotFoundError",
    "UpstreamAuthFailedError",
    "completed_tournee_code",
    "extract_packages",
]
