"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures middleware, exception handlers, and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from psycopg_pool import ConnectionPool

from src.adapters.repository.memory import InMemoryVerificationRepository
from src.adapters.repository.postgres import PostgresVerificationRepository, run_migrations
from src.adapters.smtp.console import ConsoleEmailSender
from src.adapters.smtp.http_api import HttpApiEmailSender
from src.api.cors import CORS_ALLOW_HEADERS, PreflightCORSMiddleware
from src.api.dependencies import get_repository
from src.api.errors import error_response, register_exception_handlers
from src.api.routes import router
from src.config.logging import configure_logging
from src.config.settings import Settings, get_settings
from src.domain.exceptions import PersistenceFailure
from src.domain.ports import DeploymentMode, EmailSender

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "verification",
        "description": "University email verification - issue and validate one-time codes",
    },
]


def build_email_sender(settings: Settings) -> EmailSender:
    """Use the HTTP email API when a key is configured, else log to console."""
    if settings.email_api_key:
        return HttpApiEmailSender(
            api_url=settings.email_api_url,
            api_key=settings.email_api_key,
            from_address=settings.email_from,
            timeout=settings.email_timeout_seconds,
            ttl_minutes=settings.code_ttl_minutes,
        )
    if settings.environment == DeploymentMode.PRODUCTION:
        logger.warning("No email API key configured; verification emails will only be logged")
    return ConsoleEmailSender(ttl_minutes=settings.code_ttl_minutes)


def open_pool(settings: Settings) -> ConnectionPool:
    """Create the connection pool with explicit sizing and statement timeout."""
    return ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        timeout=settings.db_timeout_seconds,
        kwargs={"options": f"-c statement_timeout={settings.statement_timeout_ms}"},
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates the data store adapter (pool + migrations for Postgres)
    - Creates the email sender
    - Closes connection pool on shutdown
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    logger.info("Starting application in %s mode...", settings.environment.value)

    pool = None
    app.state.repository = None
    app.state.email_sender = build_email_sender(settings)

    if settings.storage_backend == "memory":
        logger.warning("Using in-memory verification store; codes are lost on restart")
        app.state.repository = InMemoryVerificationRepository()
    elif not settings.database_url:
        # Requests fail with a configuration error until DATABASE_URL is set
        logger.error("Configuration error: DATABASE_URL is not set")
    else:
        logger.info("Connecting to database...")
        pool = open_pool(settings)

        logger.info("Running database migrations...")
        run_migrations(pool)

        app.state.repository = PostgresVerificationRepository(
            pool, timeout=settings.db_timeout_seconds
        )

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    if pool is not None:
        pool.close()
        logger.info("Database connection pool closed")


def create_app() -> FastAPI:
    """Build the application with middleware, handlers and routes."""
    settings = get_settings()

    application = FastAPI(
        title="peach-verify",
        description="University email verification API - one-time codes for .edu addresses",
        version="0.1.0",
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )
    application.add_middleware(
        PreflightCORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=CORS_ALLOW_HEADERS,
    )
    register_exception_handlers(application)
    application.include_router(router)

    @application.get("/health")
    def health_check(request: Request):
        """
        Health check endpoint with data store validation.

        Returns 200 OK if application and data store are healthy.
        """
        repository = get_repository(request)
        try:
            repository.ping()
        except PersistenceFailure:
            return error_response(status.HTTP_503_SERVICE_UNAVAILABLE, "Data store unavailable")
        return {"status": "healthy"}

    return application


app = create_app()
