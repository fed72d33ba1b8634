"""Custom exceptions for the ShareFare client."""

from decimal import Decimal


class ShareFareError(Exception):
    """Base exception for all ShareFare client errors."""

    pass


class ConfigurationError(ShareFareError):
    """Raised when configuration is invalid or missing."""

    pass


class CredentialStoreError(ShareFareError):
    """Raised when the local encrypted store cannot be read or written."""

    pass


class APIError(ShareFareError):
    """Base class for API-related errors."""

    pass


class AuthenticationError(APIError):
    """Raised when login or signup fails or yields no token."""

    pass


class ServerError(APIError):
    """Raised when the server answers an authenticated call with an error status."""

    def __init__(self, message: str, status_code: int):
        self.status_code = status_code
        super().__init__(message)


class IdentityLookupError(APIError):
    """Raised when the current user's id cannot be resolved."""

    pass


class ValidationError(ShareFareError):
    """Raised when input is rejected client-side, before any request is sent."""

    pass


class SettlementValidationError(ValidationError):
    """Raised when a proposed settlement is not acceptable.

    ``reason`` is one of ``nothing_to_settle``, ``not_a_number``,
    ``non_positive`` or ``exceeds_balance``. ``bound`` is the limit that was
    violated, when there is one.
    """

    def __init__(self, reason: str, message: str, bound: Decimal | None = None):
        self.reason = reason
        self.bound = bound
        super().__init__(message)


class GroupValidationError(ValidationError):
    """Raised when a new group is missing its name or members."""

    pass


class ExpenseValidationError(ValidationError):
    """Raised when a new expense fails client-side checks."""

    pass


class VerificationCodeError(ValidationError):
    """Raised when an email verification code is not six digits."""

    pass
