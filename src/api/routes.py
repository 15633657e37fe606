"""
API routes - Verification code issuance and validation endpoints.

This module defines the HTTP endpoints:
- POST /send-email-verification - Issue a code for a university email
- POST /verify-email-code - Validate and consume a code
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status
from fastapi.responses import JSONResponse

from src.api.cors import CORS_HEADERS
from src.api.dependencies import get_verification_service
from src.api.errors import (
    INVALID_EMAIL_MESSAGE,
    MISSING_FIELDS_MESSAGE,
    SEND_PATH,
    VERIFY_PATH,
    error_response,
)
from src.api.models import (
    ErrorResponse,
    SendVerificationRequest,
    SendVerificationResponse,
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from src.config.settings import Settings, get_settings
from src.domain.exceptions import (
    InvalidEmailDomain,
    InvalidOrExpiredCode,
    MissingFields,
    PersistenceFailure,
)
from src.domain.ports import DeploymentMode
from src.domain.verification import VerificationService

router = APIRouter(tags=["verification"])


@router.post(
    SEND_PATH,
    response_model=SendVerificationResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or non-.edu email"},
        500: {"model": ErrorResponse, "description": "Storage or configuration failure"},
    },
    summary="Send a verification code",
    description="Issue a 6-digit code, valid for 15 minutes, to a university email address.",
)
def send_email_verification(
    request_data: SendVerificationRequest,
    background_tasks: BackgroundTasks,
    service: VerificationService = Depends(get_verification_service),
    settings: Settings = Depends(get_settings),
) -> SendVerificationResponse | JSONResponse:
    """
    Issue a verification code.

    - **email**: Address ending in the institutional suffix
    - **university**: Institution name shown in the email

    The email is sent after the response; delivery failures do not
    affect the result.
    """
    try:
        result = service.issue(
            request_data.email, request_data.university, schedule=background_tasks.add_task
        )
    except (InvalidEmailDomain, MissingFields):
        return error_response(status.HTTP_400_BAD_REQUEST, INVALID_EMAIL_MESSAGE)
    except PersistenceFailure as e:
        details = e.detail if settings.environment == DeploymentMode.DEVELOPMENT else None
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to store verification code", details
        )

    return SendVerificationResponse(
        message="Verification code sent successfully",
        code=result.dev_code,
    )


@router.post(
    VERIFY_PATH,
    response_model=VerifyCodeResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing fields or invalid/expired code"},
        500: {"model": ErrorResponse, "description": "Storage or configuration failure"},
    },
    summary="Verify a code",
    description="Consume a verification code. Each code is accepted at most once.",
)
def verify_email_code(
    request_data: VerifyCodeRequest,
    service: VerificationService = Depends(get_verification_service),
) -> VerifyCodeResponse | JSONResponse:
    """
    Validate a verification code.

    Wrong, expired and already-used codes produce the same error.
    """
    try:
        service.validate(request_data.email, request_data.code)
    except MissingFields:
        return error_response(status.HTTP_400_BAD_REQUEST, MISSING_FIELDS_MESSAGE)
    except InvalidOrExpiredCode:
        return error_response(
            status.HTTP_400_BAD_REQUEST, "Invalid or expired verification code"
        )
    except PersistenceFailure:
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to verify code")

    return VerifyCodeResponse(message="Email verified successfully")


@router.options(SEND_PATH, include_in_schema=False)
@router.options(VERIFY_PATH, include_in_schema=False)
def preflight() -> Response:
    """CORS preflight - empty 200."""
    return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)
