"""
Verification domain service - university email verification codes.

This module contains the core business logic for proving control of a
university inbox: issuing short-lived one-time codes and validating them.

Verification Lifecycle (Forward-Only Transitions)
=================================================

States:
- PENDING: Code issued, not yet used, before expires_at
- CONSUMED: Terminal state after successful validation (verified = true)
- EXPIRED: Terminal state once the clock passes expires_at

Valid Transitions:
    PENDING -> CONSUMED  (successful validation)
    PENDING -> EXPIRED   (time passage, no write)

Invalid Transitions (never allowed):
    CONSUMED -> any
    EXPIRED -> any

Note: The PENDING -> CONSUMED flip happens at the repository level as a
single atomic conditional update, so a code can never be accepted twice.
"""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from .exceptions import InvalidEmailDomain, InvalidOrExpiredCode, MissingFields
from .ports import DeploymentMode, EmailSender, VerificationRepository

logger = logging.getLogger(__name__)

CODE_MIN = 100000
CODE_MAX = 999999
DEFAULT_TTL = timedelta(minutes=15)


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class IssueResult:
    """Outcome of a successful issuance."""

    email: str
    expires_at: datetime
    dev_code: str | None = None


@dataclass
class VerificationService:
    """
    Domain service for email verification.

    Orchestrates the issuance flow (normalization, suffix check, code
    generation, persistence, best-effort delivery) and the validation flow
    (delegated atomic check-and-consume).
    """

    repository: VerificationRepository
    email_sender: EmailSender
    mode: DeploymentMode = DeploymentMode.PRODUCTION
    institution_suffix: str = ".edu"
    ttl: timedelta = DEFAULT_TTL
    clock: Callable[[], datetime] = field(default=utc_now)

    def issue(
        self,
        email: str,
        university: str,
        schedule: Callable[..., Any] | None = None,
    ) -> IssueResult:
        """
        Issue a verification code for a university email address.

        The code is persisted before any delivery attempt. Delivery runs
        inline, or is handed to ``schedule`` (called as
        ``schedule(self.deliver, email, code, university)``) so it can run
        after the response is sent.

        Args:
            email: User's email address (will be normalized)
            university: Free-form institution label, used for templating only
            schedule: Optional task scheduler for the delivery step

        Returns:
            IssueResult; ``dev_code`` is set only in DEVELOPMENT mode

        Raises:
            MissingFields: If email is empty
            InvalidEmailDomain: If email lacks the institutional suffix
            PersistenceFailure: If the code could not be stored
        """
        normalized_email = self._normalize_email(email)
        if not normalized_email:
            raise MissingFields("email")
        if not self._has_institution_suffix(normalized_email):
            raise InvalidEmailDomain(normalized_email)

        code = self._generate_verification_code()
        expires_at = self.clock() + self.ttl

        self.repository.create_verification(normalized_email, code, expires_at)
        logger.info("Verification code stored for %s (expires %s)", normalized_email, expires_at.isoformat())

        if self.mode == DeploymentMode.DEVELOPMENT:
            logger.info(
                "[VERIFICATION] Email: %s Code: %s University: %s", normalized_email, code, university
            )

        if schedule is not None:
            schedule(self.deliver, normalized_email, code, university)
        else:
            self.deliver(normalized_email, code, university)

        dev_code = code if self.mode == DeploymentMode.DEVELOPMENT else None
        return IssueResult(email=normalized_email, expires_at=expires_at, dev_code=dev_code)

    def deliver(self, email: str, code: str, university: str) -> bool:
        """
        Attempt a single delivery of the code.

        Failures are logged and swallowed; the code is already stored.

        Returns:
            True if the sender accepted the message, False otherwise
        """
        try:
            self.email_sender.send_verification_code(email, code, university)
        except Exception:
            logger.warning("Verification email delivery failed for %s", email, exc_info=True)
            return False
        return True

    def validate(self, email: str, code: str) -> None:
        """
        Validate a submitted code and consume it.

        Delegates to the repository's atomic validate-and-consume. Wrong
        code, expiry, reuse and unknown email are reported identically.

        Raises:
            MissingFields: If email or code is empty
            InvalidOrExpiredCode: If no eligible record was consumed
            PersistenceFailure: If the data store call fails
        """
        normalized_email = self._normalize_email(email)
        if not normalized_email or not code:
            raise MissingFields("email" if not normalized_email else "code")

        if not self.repository.validate_and_consume(normalized_email, code, self.clock()):
            raise InvalidOrExpiredCode()
        logger.info("Email verified: %s", normalized_email)

    def _normalize_email(self, email: str) -> str:
        """
        Normalize email address for consistent storage and lookup.

        Applies: strip whitespace + lowercase
        """
        return email.strip().lower()

    def _has_institution_suffix(self, email: str) -> bool:
        return email.endswith(self.institution_suffix.lower())

    def _generate_verification_code(self) -> str:
        """
        Generate a 6-digit code uniformly over [100000, 999999].

        Uses the secrets module for cryptographic randomness.
        """
        return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))
