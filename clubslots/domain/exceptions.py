"""
Domain-specific exception hierarchy for the clubslots application.

Every error carries a stable ``code`` and a human readable ``message`` so the
surrounding layer can report it without leaking raw provider payloads.
"""

from typing import Dict, Optional


class ClubSlotsError(Exception):
    """Base class for all application-level errors."""

    code = "INTERNAL"
    status = 500

    def __init__(self, message: str, *, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status

    def to_dict(self) -> Dict[str, str]:
        return {"code": self.code, "message": self.message}


class ValidationError(ClubSlotsError):
    """Raised when request input is missing or malformed."""

    code = "VALIDATION"
    status = 400


class OutOfBusinessHoursError(ClubSlotsError):
    """Raised when a requested booking falls outside club operating hours."""

    code = "OUT_OF_BUSINESS_HOURS"
    status = 400


class ConfigError(ClubSlotsError):
    """Raised when the configuration file cannot be loaded."""

    code = "CONFIG"


class InternalError(ClubSlotsError):
    """Raised for unexpected failures."""


class ProviderError(ClubSlotsError):
    """Raised when a calendar provider call fails."""

    code = "GOOGLE_API"
    status = 502


class ProviderAuthError(ProviderError):
    """Raised when the provider rejects our credentials."""

    code = "AUTH"
    status = 401


class AuthenticationError(ProviderAuthError):
    """Raised when credentials cannot be acquired or refreshed."""


class ProviderPermissionError(ProviderError):
    """Raised when the authenticated identity lacks access to a calendar."""

    code = "PERMISSION"
    status = 403


class ProviderConflictError(ProviderError):
    """Raised on write conflicts and failed conditional updates."""

    code = "CONFLICT"
    status = 409


class ProviderEtagMismatchError(ProviderConflictError):
    """Raised when a conditional update or delete sees a stale etag."""

    code = "CONFLICT_ETAG"
    status = 412


def provider_error_from_status(status: int, reason: Optional[str] = None) -> ProviderError:
    """
    Map a provider HTTP status to the matching error type.

    Args:
        status: HTTP status returned by the provider
        reason: Short reason extracted from the provider response, if any

    Returns:
        A ProviderError subclass instance (not raised)
    """
    if status == 401:
        return ProviderAuthError("Login required (401). Check the calendar credentials.", status=status)
    if status == 403:
        return ProviderPermissionError(
            "Insufficient permissions (403). Verify access to the calendar.", status=status
        )
    if status == 409:
        return ProviderConflictError("Conflict (409).", status=status)
    if status == 412:
        return ProviderEtagMismatchError("Etag mismatch (412).", status=status)
    return ProviderError(reason or "Google API error", status=status)
