"""
In-memory repository adapter - Implements VerificationRepository protocol.

Process-local store for development (storage_backend=memory) and tests.
A single lock serializes every operation, which makes validate_and_consume
an atomic check-and-flip within one process. State is lost on restart.
"""

import secrets
import threading
from dataclasses import replace
from datetime import UTC, datetime

from src.domain.ports import VerificationRequest


class InMemoryVerificationRepository:
    """
    Implements VerificationRepository protocol with a locked list.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: list[VerificationRequest] = []

    def create_verification(self, email: str, code: str, expires_at: datetime) -> None:
        record = VerificationRequest(
            email=email,
            code=code,
            expires_at=expires_at,
            created_at=datetime.now(UTC),
        )
        with self._lock:
            self._records.append(record)

    def validate_and_consume(self, email: str, code: str, now: datetime) -> bool:
        with self._lock:
            # Newest first so the most recent matching code is consumed
            for index in range(len(self._records) - 1, -1, -1):
                record = self._records[index]
                if record.email != email or record.verified or not now < record.expires_at:
                    continue
                if not secrets.compare_digest(record.code.encode(), code.encode()):
                    continue
                self._records[index] = replace(record, verified=True)
                return True
        return False

    def _records_for(self, email: str) -> list[VerificationRequest]:
        """Snapshot of stored records for one email, oldest first. Test helper."""
        with self._lock:
            return [r for r in self._records if r.email == email]

    def ping(self) -> None:
        return None
