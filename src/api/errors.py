"""
Exception handlers - map boundary and configuration errors to JSON.

Error bodies use the ``{"error": ..., "details"?: ...}`` shape expected by
the web client.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.api.cors import CORS_HEADERS
from src.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

SEND_PATH = "/send-email-verification"
VERIFY_PATH = "/verify-email-code"

INVALID_EMAIL_MESSAGE = "Valid .edu email required"
MISSING_FIELDS_MESSAGE = "Email and verification code required"

# Malformed or incomplete bodies are client errors on both endpoints
_VALIDATION_MESSAGES = {
    SEND_PATH: INVALID_EMAIL_MESSAGE,
    VERIFY_PATH: MISSING_FIELDS_MESSAGE,
}


def error_response(
    status_code: int,
    error: str,
    details: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    content = {"error": error}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = _VALIDATION_MESSAGES.get(request.url.path, "Invalid request body")
    logger.info("Rejected request to %s: %d validation error(s)", request.url.path, len(exc.errors()))
    return error_response(status.HTTP_400_BAD_REQUEST, message)


async def configuration_exception_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("Configuration error on %s: %s", request.url.path, exc)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server configuration error")


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    # Rendered outside the CORS middleware, so the headers are added here
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", headers=CORS_HEADERS
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers on an application."""
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ConfigurationError, configuration_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
