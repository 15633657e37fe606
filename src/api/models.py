"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Request models reject unknown keys so malformed payloads never reach the
domain layer.
"""

from pydantic import BaseModel, ConfigDict, Field


class SendVerificationRequest(BaseModel):
    """Request model for issuing a verification code."""

    model_config = ConfigDict(extra="forbid")

    email: str = Field(..., min_length=1, max_length=254, description="University email address")
    university: str = Field("", max_length=200, description="Claimed institution name")


class SendVerificationResponse(BaseModel):
    """Response model for a successful issuance."""

    message: str
    code: str | None = Field(None, description="Raw code, development mode only")


class VerifyCodeRequest(BaseModel):
    """Request model for verifying a code."""

    model_config = ConfigDict(extra="forbid")

    email: str = Field(..., min_length=1, max_length=254)
    code: str = Field(..., min_length=1, max_length=32, description="Verification code from email")


class VerifyCodeResponse(BaseModel):
    """Response model for a successful verification."""

    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
    details: str | None = None
