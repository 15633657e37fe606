"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock
- In-memory repository and recording email sender
- Verification service wiring
- PostgreSQL pool and repository (skipped when no database is reachable)
"""

import os
from collections.abc import Generator
from datetime import UTC, datetime, timedelta

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.memory import InMemoryVerificationRepository
from src.adapters.repository.postgres import PostgresVerificationRepository, run_migrations
from src.config.settings import get_settings
from src.domain.ports import DeploymentMode
from src.domain.verification import VerificationService


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class RecordingEmailSender:
    """EmailSender that keeps every message it was asked to send."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []

    def send_verification_code(self, email: str, code: str, university: str) -> None:
        self.sent.append((email, code, university))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 9, 1, 12, 0, 0, tzinfo=UTC))


@pytest.fixture
def repository() -> InMemoryVerificationRepository:
    return InMemoryVerificationRepository()


@pytest.fixture
def sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def service(
    repository: InMemoryVerificationRepository, sender: RecordingEmailSender, clock: FakeClock
) -> VerificationService:
    """Development-mode service over the in-memory store."""
    return VerificationService(
        repository=repository,
        email_sender=sender,
        mode=DeploymentMode.DEVELOPMENT,
        clock=clock,
    )


def database_url() -> str | None:
    return os.environ.get("TEST_DATABASE_URL") or get_settings().database_url


@pytest.fixture(scope="session")
def pg_pool() -> Generator[ConnectionPool, None, None]:
    """
    Connection pool for PostgreSQL-backed tests, with migrations applied.

    Uses TEST_DATABASE_URL, falling back to the configured DATABASE_URL.
    Skips when neither is set or the server is unreachable.
    """
    conninfo = database_url()
    if not conninfo:
        pytest.skip("No TEST_DATABASE_URL or DATABASE_URL configured")

    try:
        with psycopg.connect(conninfo, connect_timeout=3):
            pass
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL unavailable: {type(e).__name__}")

    pool = ConnectionPool(conninfo=conninfo, min_size=1, max_size=25, open=True)
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def pg_repository(pg_pool: ConnectionPool) -> PostgresVerificationRepository:
    """Repository over a freshly emptied verification table."""
    with pg_pool.connection() as conn:
        conn.execute("DELETE FROM email_verifications")
        conn.commit()
    return PostgresVerificationRepository(pg_pool)
