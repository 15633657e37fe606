"""
Domain layer - Pure business logic with zero framework imports.

This package contains the core business logic for university email
verification. It defines its own port interfaces for infrastructure
abstraction, ensuring true hexagonal architecture decoupling.
"""

from .exceptions import (
    ConfigurationError,
    DeliveryFailure,
    InvalidEmailDomain,
    InvalidOrExpiredCode,
    MissingFields,
    PersistenceFailure,
    VerificationError,
)
from .ports import (
    DeploymentMode,
    EmailSender,
    VerificationRepository,
    VerificationRequest,
    VerificationState,
)
from .verification import IssueResult, VerificationService

__all__ = [
    "ConfigurationError",
    "DeliveryFailure",
    "DeploymentMode",
    "EmailSender",
    "InvalidEmailDomain",
    "InvalidOrExpiredCode",
    "IssueResult",
    "MissingFields",
    "PersistenceFailure",
    "VerificationError",
    "VerificationRepository",
    "VerificationRequest",
    "VerificationService",
    "VerificationState",
]
