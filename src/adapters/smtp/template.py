"""Verification email content."""

from dataclasses import dataclass

SUBJECT = "Peach Lease - Verify Your University Email"

_BODY = """Hello!

Welcome to Peach Lease! To complete your registration and verify that you're a student at {university}, please use this verification code:

{code}

This code will expire in {ttl_minutes} minutes.

If you didn't request this verification, please ignore this email.

Thanks,
The Peach Lease Team
"""


@dataclass(frozen=True)
class EmailMessage:
    subject: str
    body: str


def render_verification_email(code: str, university: str, ttl_minutes: int = 15) -> EmailMessage:
    """Build the subject and plain-text body for a verification email."""
    university = university.strip() or "your university"
    return EmailMessage(
        subject=SUBJECT,
        body=_BODY.format(code=code, university=university, ttl_minutes=ttl_minutes),
    )
