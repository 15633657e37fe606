"""
HTTP API email sender adapter - Implements EmailSender protocol.

Delivers verification emails through a transactional email HTTP API
(Resend-compatible JSON payload, Bearer token auth). Each send is a single
attempt bounded by a request timeout; there is no retry loop.
"""

import logging

import requests

from src.adapters.smtp.template import render_verification_email
from src.domain.exceptions import DeliveryFailure

logger = logging.getLogger(__name__)


class HttpApiEmailSender:
    """
    Implements EmailSender protocol via an HTTP email API.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        from_address: str,
        timeout: float = 5.0,
        ttl_minutes: int = 15,
        session: requests.Session | None = None,
    ) -> None:
        self._api_url = api_url
        self._api_key = api_key
        self._from_address = from_address
        self._timeout = timeout
        self._ttl_minutes = ttl_minutes
        self._session = session or requests.Session()

    def send_verification_code(self, email: str, code: str, university: str) -> None:
        """
        POST the verification email to the API.

        Raises:
            DeliveryFailure: On timeout, transport error or non-2xx response
        """
        message = render_verification_email(code, university, self._ttl_minutes)
        payload = {
            "from": self._from_address,
            "to": [email],
            "subject": message.subject,
            "text": message.body,
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = self._session.post(
                self._api_url, json=payload, headers=headers, timeout=self._timeout
            )
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            raise DeliveryFailure(f"Email API timeout after {self._timeout}s") from e
        except requests.exceptions.HTTPError as e:
            status_code = getattr(e.response, "status_code", "an error")
            raise DeliveryFailure(f"Email API returned {status_code}") from e
        except requests.exceptions.RequestException as e:
            raise DeliveryFailure(f"Email API request failed: {type(e).__name__}") from e

        logger.info("Verification email sent to %s", email)
