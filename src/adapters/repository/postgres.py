"""
PostgreSQL repository adapter - Implements VerificationRepository protocol.

This module provides the PostgreSQL implementation of the domain's
repository port using psycopg3 with raw SQL.

Atomic Validate-and-Consume:
----------------------------
validate_and_consume is a single UPDATE whose target row is chosen by a
sub-select guarded by the full eligibility predicate (email, code,
verified = FALSE, expires_at > now) and locked with FOR UPDATE. A concurrent
caller blocked on the same row re-evaluates the predicate after the winner
commits, sees verified = TRUE, and updates nothing. The outer
``verified = FALSE`` guard repeats the check on the row being written.

Error Mapping:
--------------
Every psycopg error (including pool acquisition timeouts, which subclass
OperationalError) is re-raised as the domain's PersistenceFailure. The
detail carries the error class and server message only, never the conninfo.
"""

import logging
from datetime import datetime
from pathlib import Path

import psycopg
from psycopg_pool import ConnectionPool

from src.domain.exceptions import PersistenceFailure

logger = logging.getLogger(__name__)


def _failure(exc: psycopg.Error) -> PersistenceFailure:
    message = str(exc).strip().splitlines()[0] if str(exc).strip() else ""
    return PersistenceFailure(f"{type(exc).__name__}: {message}" if message else type(exc).__name__)


class PostgresVerificationRepository:
    """
    Implements VerificationRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool, timeout: float = 5.0) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
            timeout: Seconds to wait for a pooled connection
        """
        self._pool = pool
        self._timeout = timeout

    def create_verification(self, email: str, code: str, expires_at: datetime) -> None:
        """
        Insert a new PENDING verification request.

        Earlier outstanding codes for the same email are not touched.

        Args:
            email: Normalized email address (lowercase, stripped)
            code: 6-digit verification code
            expires_at: Absolute expiry instant

        Raises:
            PersistenceFailure: On any database error
        """
        sql = """
            INSERT INTO email_verifications (email, verification_code, expires_at, verified, created_at)
            VALUES (%s, %s, %s, FALSE, NOW())
        """

        try:
            with self._pool.connection(timeout=self._timeout) as conn, conn.cursor() as cursor:
                cursor.execute(sql, (email, code, expires_at))
                conn.commit()
        except psycopg.Error as e:
            logger.error("Failed to store verification code for %s: %s", email, type(e).__name__)
            raise _failure(e) from e

    def validate_and_consume(self, email: str, code: str, now: datetime) -> bool:
        """
        Consume the newest eligible record for (email, code) in one statement.

        Args:
            email: Normalized email address
            code: Submitted verification code
            now: Instant compared strictly against expires_at

        Returns:
            True if exactly one record transitioned to verified, else False

        Raises:
            PersistenceFailure: On any database error
        """
        sql = """
            UPDATE email_verifications
            SET verified = TRUE, verified_at = NOW()
            WHERE id = (
                SELECT id FROM email_verifications
                WHERE email = %s
                  AND verification_code = %s
                  AND verified = FALSE
                  AND expires_at > %s
                ORDER BY created_at DESC, id DESC
                LIMIT 1
                FOR UPDATE
            )
              AND verified = FALSE
            RETURNING id
        """

        try:
            with self._pool.connection(timeout=self._timeout) as conn, conn.cursor() as cursor:
                cursor.execute(sql, (email, code, now))
                row = cursor.fetchone()
                conn.commit()
        except psycopg.Error as e:
            logger.error("Failed to verify code for %s: %s", email, type(e).__name__)
            raise _failure(e) from e

        return row is not None

    def ping(self) -> None:
        """Round-trip a trivial query; raises PersistenceFailure if unreachable."""
        try:
            with self._pool.connection(timeout=self._timeout) as conn:
                conn.execute("SELECT 1")
        except psycopg.Error as e:
            raise _failure(e) from e


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info("Migration complete: %s", sql_file.name)
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
