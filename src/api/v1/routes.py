"""
API v1 routes.

Defines REST endpoints for registration by email OTP, password reset by
emailed link, and the chat assistant proxy.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import (
    get_chat_service,
    get_password_reset_service,
    get_registration_service,
)
from src.api.models import (
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    IssueResponse,
    MessageResponse,
    OtpRequest,
    PasswordResetConfirmRequest,
    PasswordResetRequest,
    RegisterRequest,
    RegisterResponse,
)
from src.config.settings import Settings, get_settings
from src.domain.chat import ChatService
from src.domain.exceptions import (
    DeliveryFailed,
    IdentityConflict,
    IdentityNotFound,
    VerificationFailed,
)
from src.domain.password_reset import PasswordResetService
from src.domain.registration import RegistrationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["v1"])

# Identical for every address so issuance never reveals registration status
OTP_SENT_MESSAGE = "If the address can be registered, a verification code has been sent"
RESET_SENT_MESSAGE = "If an account exists for the address, a password reset link has been sent"

INVALID_CODE_MESSAGE = "Invalid or expired code"
INVALID_LINK_MESSAGE = "Invalid or expired password reset link"
DELIVERY_FAILED_MESSAGE = "Could not send email, please try again"
CONFLICT_MESSAGE = "An account with this email already exists. Please log in instead."

_ISSUE_RESPONSES = {
    422: {"model": ErrorResponse, "description": "Validation error"},
    502: {"model": ErrorResponse, "description": "Email could not be sent"},
    503: {"model": ErrorResponse, "description": "Upstream unavailable"},
}


@router.post(
    "/otp",
    response_model=IssueResponse,
    responses=_ISSUE_RESPONSES,
    summary="Send a registration code",
    description="Email a 6-digit code valid for 5 minutes. "
    "Requesting again replaces any previous code.",
)
async def request_otp(
    request_data: OtpRequest,
    service: RegistrationService = Depends(get_registration_service),
    settings: Settings = Depends(get_settings),
) -> IssueResponse:
    """
    Issue a registration code.

    - **email**: Address that will receive the code
    """
    try:
        service.request_code(request_data.email)
    except DeliveryFailed:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=DELIVERY_FAILED_MESSAGE,
        ) from None
    return IssueResponse(message=OTP_SENT_MESSAGE, expires_in_seconds=settings.otp_ttl_seconds)


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid or expired code"},
        409: {"model": ErrorResponse, "description": "Account already exists"},
        422: {"model": ErrorResponse, "description": "Validation error"},
        503: {"model": ErrorResponse, "description": "Upstream unavailable"},
    },
    summary="Create an account with the emailed code",
)
async def register(
    request_data: RegisterRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> RegisterResponse:
    """
    Verify the code and create the account.

    - **email**: Address the code was sent to
    - **display_name**: Full name (DISPLAY_NAME_MIN_LENGTH, default 3)
    - **password**: Password (PASSWORD_MIN_LENGTH, default 8)
    - **otp**: 6-digit code from the email
    """
    try:
        uid = service.register(
            request_data.email,
            request_data.display_name,
            request_data.password,
            request_data.otp,
        )
    except VerificationFailed as e:
        # Not found, mismatch and expiry share one message (no enumeration)
        logger.info("Registration rejected: %s", type(e).__name__)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CODE_MESSAGE,
        ) from None
    except IdentityConflict:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=CONFLICT_MESSAGE,
        ) from None
    return RegisterResponse(message="User registered successfully", uid=uid)


@router.post(
    "/password-reset",
    response_model=IssueResponse,
    responses=_ISSUE_RESPONSES,
    summary="Send a password reset link",
    description="Email a link valid for 1 hour. Requesting again replaces any previous link.",
)
async def request_password_reset(
    request_data: PasswordResetRequest,
    service: PasswordResetService = Depends(get_password_reset_service),
    settings: Settings = Depends(get_settings),
) -> IssueResponse:
    """
    Issue a password reset link.

    - **email**: Address that will receive the link
    """
    try:
        service.request_reset(request_data.email)
    except DeliveryFailed:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=DELIVERY_FAILED_MESSAGE,
        ) from None
    return IssueResponse(message=RESET_SENT_MESSAGE, expires_in_seconds=settings.reset_ttl_seconds)


@router.post(
    "/password-reset/confirm",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid or expired link"},
        422: {"model": ErrorResponse, "description": "Validation error"},
        503: {"model": ErrorResponse, "description": "Upstream unavailable"},
    },
    summary="Set a new password with the emailed link",
)
async def confirm_password_reset(
    request_data: PasswordResetConfirmRequest,
    service: PasswordResetService = Depends(get_password_reset_service),
) -> MessageResponse:
    """
    Verify the reset token and change the password.

    - **email** and **token**: the two query parameters of the reset link
    - **new_password**: Password (PASSWORD_MIN_LENGTH, default 8)
    """
    try:
        service.reset_password(request_data.email, request_data.token, request_data.new_password)
    except (VerificationFailed, IdentityNotFound) as e:
        # Unknown accounts look exactly like bad links (no enumeration)
        logger.info("Password reset rejected: %s", type(e).__name__)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=INVALID_LINK_MESSAGE,
        ) from None
    return MessageResponse(message="Password has been reset successfully")


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={
        422: {"model": ErrorResponse, "description": "Validation error"},
        503: {"model": ErrorResponse, "description": "Assistant unavailable"},
    },
    summary="Ask the study assistant",
)
async def chat(
    request_data: ChatRequest,
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """Forward a message to the assistant (prompts longer than 2000 characters are truncated)."""
    return ChatResponse(response_text=service.ask(request_data.message))
