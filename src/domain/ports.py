"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the verification record, its lifecycle states, and the
interfaces (ports) that the domain requires from infrastructure.
Adapters implement these protocols.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol


class DeploymentMode(str, Enum):
    """
    Deployment mode injected into the verification service.

    DEVELOPMENT echoes the raw verification code in issuance responses
    so the flow can be exercised without a mailbox. PRODUCTION never does.
    """

    PRODUCTION = "production"
    DEVELOPMENT = "development"


class VerificationState(str, Enum):
    """
    Lifecycle states of a verification request.

    State Transitions (forward-only):
    - PENDING -> CONSUMED (successful validation)
    - PENDING -> EXPIRED (TTL elapsed; derived from the clock, never written)

    Terminal States:
    - CONSUMED: verified flag set, code can never be accepted again
    - EXPIRED: now >= expires_at, code can never be accepted

    Note: The PENDING -> CONSUMED flip is enforced at the repository level
    via a single conditional UPDATE.
    """

    PENDING = "PENDING"
    EXPIRED = "EXPIRED"
    CONSUMED = "CONSUMED"


def state_of(verified: bool, expires_at: datetime, now: datetime) -> VerificationState:
    """Derive the lifecycle state of a record at time ``now``."""
    if verified:
        return VerificationState.CONSUMED
    if now < expires_at:
        return VerificationState.PENDING
    return VerificationState.EXPIRED


@dataclass(frozen=True)
class VerificationRequest:
    """A stored verification code for one email address."""

    email: str
    code: str
    expires_at: datetime
    created_at: datetime
    verified: bool = False

    def state(self, now: datetime) -> VerificationState:
        return state_of(self.verified, self.expires_at, now)


class VerificationRepository(Protocol):
    """Port interface for verification persistence."""

    def create_verification(self, email: str, code: str, expires_at: datetime) -> None:
        """
        Atomically store a new PENDING verification request.

        Outstanding codes for the same email are left untouched; several
        may be valid at once until their own expiry.

        Args:
            email: Normalized email address
            code: 6-digit verification code
            expires_at: Absolute expiry instant (timezone-aware)

        Raises:
            PersistenceFailure: If the data store call fails
        """
        ...

    def validate_and_consume(self, email: str, code: str, now: datetime) -> bool:
        """
        Check a code and mark it used in one atomic step.

        A record is eligible when email and code match, verified is false
        and ``now`` is strictly before expires_at. When several records are
        eligible, the most recently created one is consumed. Concurrent
        callers for the same record: at most one observes True.

        Args:
            email: Normalized email address
            code: Submitted verification code
            now: Current instant used for the expiry comparison

        Returns:
            True if a record was consumed, False otherwise

        Raises:
            PersistenceFailure: If the data store call fails
        """
        ...


class EmailSender(Protocol):
    """Port interface for email delivery."""

    def send_verification_code(self, email: str, code: str, university: str) -> None:
        """
        Send verification code to email address.

        Args:
            email: Recipient email address
            code: 6-digit verification code
            university: Institution name claimed by the user

        Raises:
            DeliveryFailure: If the transport rejects or fails the message
        """
        ...
