"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from datetime import timedelta

from fastapi import Depends, Request

from src.adapters.smtp.console import ConsoleEmailSender
from src.config.settings import Settings, get_settings
from src.domain.exceptions import ConfigurationError
from src.domain.ports import EmailSender, VerificationRepository
from src.domain.verification import VerificationService

# Module-level singleton - ConsoleEmailSender is stateless
_console_sender = ConsoleEmailSender()


def get_repository(request: Request) -> VerificationRepository:
    """
    Get the data store adapter from app state.

    The adapter is created during app lifespan startup. It is absent when
    the Postgres backend is selected without a database URL.
    """
    repository = getattr(request.app.state, "repository", None)
    if repository is None:
        raise ConfigurationError("Data store is not configured")
    return repository


def get_email_sender(request: Request) -> EmailSender:
    """Get the email sender from app state, falling back to console logging."""
    return getattr(request.app.state, "email_sender", None) or _console_sender


def get_verification_service(
    repository: VerificationRepository = Depends(get_repository),
    email_sender: EmailSender = Depends(get_email_sender),
    settings: Settings = Depends(get_settings),
) -> VerificationService:
    """
    Create verification service with injected dependencies.

    Deployment mode, suffix and TTL come from settings here so the
    domain never reads ambient configuration.
    """
    return VerificationService(
        repository=repository,
        email_sender=email_sender,
        mode=settings.environment,
        institution_suffix=settings.institution_suffix,
        ttl=timedelta(minutes=settings.code_ttl_minutes),
    )
