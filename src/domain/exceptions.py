"""
Domain exceptions - Semantic error types for email verification.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
"""


class VerificationError(Exception):
    """Base class for verification domain errors."""

    pass


class InvalidEmailDomain(VerificationError):
    """Email does not end with the required institutional suffix."""

    pass


class MissingFields(VerificationError):
    """A required request field is absent or empty."""

    pass


class PersistenceFailure(VerificationError):
    """The data store call failed or errored."""

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail)
        self.detail = detail


class ConfigurationError(VerificationError):
    """Required data store or email credentials are not configured."""

    pass


class InvalidOrExpiredCode(VerificationError):
    """Wrong code, expired code, reused code, or unknown email."""

    pass


class DeliveryFailure(VerificationError):
    """Email transport failed. Logged only, never surfaced to callers."""

    pass
