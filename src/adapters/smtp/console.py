"""
Console email sender adapter - Implements EmailSender protocol.

This module provides a console-based implementation of the domain's
email sender port, logging verification emails for local development.
"""

import logging

from src.adapters.smtp.template import render_verification_email

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """
    Implements EmailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Selected when no email API key is configured.
    """

    def __init__(self, ttl_minutes: int = 15) -> None:
        self._ttl_minutes = ttl_minutes

    def send_verification_code(self, email: str, code: str, university: str) -> None:
        """
        Log the verification email instead of sending it.

        Args:
            email: Recipient email address (normalized by domain layer)
            code: 6-digit verification code
            university: Institution name used in the message body
        """
        message = render_verification_email(code, university, self._ttl_minutes)
        logger.info(
            "[VERIFICATION] Would send email to %s\nSubject: %s\n%s",
            email,
            message.subject,
            message.body,
        )
