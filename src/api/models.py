"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from pydantic import BaseModel, EmailStr, Field


class OtpRequest(BaseModel):
    """Request model for registration code issuance."""

    email: EmailStr


class IssueResponse(BaseModel):
    """Response model for code or link issuance (identical for every address)."""

    message: str
    expires_in_seconds: int


class RegisterRequest(BaseModel):
    """Request model for completing registration with the emailed code."""

    email: EmailStr
    # Length policy is configurable and enforced by the domain service
    display_name: str = Field(..., description="Full name (DISPLAY_NAME_MIN_LENGTH, default 3)")
    password: str = Field(..., description="User password (PASSWORD_MIN_LENGTH, default 8)")
    otp: str = Field(
        ...,
        min_length=6,
        max_length=6,
        pattern=r"^\d{6}$",
        description="6-digit registration code",
    )


class RegisterResponse(BaseModel):
    """Response model for successful registration."""

    message: str
    uid: str


class PasswordResetRequest(BaseModel):
    """Request model for reset link issuance."""

    email: EmailStr


class PasswordResetConfirmRequest(BaseModel):
    """Request model for redeeming a reset link."""

    email: EmailStr
    token: str = Field(..., min_length=1, description="Token from the reset link")
    new_password: str = Field(..., description="New password (PASSWORD_MIN_LENGTH, default 8)")


class MessageResponse(BaseModel):
    """Response model carrying only a user-facing message."""

    message: str


class ChatRequest(BaseModel):
    """Request model for the chat assistant."""

    message: str = Field(..., min_length=1)


class ChatResponse(BaseModel):
    """Response model for the chat assistant."""

    response_text: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
    field: str | None = None
