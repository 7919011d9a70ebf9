"""
Input validation shared by issuance and verification.

All checks raise ValidationError before any store or provider is touched.
"""

import re

from email_validator import EmailNotValidError, validate_email

from .exceptions import ValidationError

OTP_PATTERN = re.compile(r"^\d{6}$")
RESET_TOKEN_PATTERN = re.compile(r"^[0-9a-f]{64}$")


def normalize_email(email: str) -> str:
    """
    Normalize and validate an email address used as a store key.

    Applies: strip whitespace + lowercase, then syntax check.
    """
    normalized = email.strip().lower()
    try:
        validate_email(normalized, check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("email", "Invalid email address") from None
    return normalized


def require_min_length(field: str, value: str, minimum: int) -> None:
    if len(value) < minimum:
        raise ValidationError(field, f"Must be at least {minimum} characters")


def require_pattern(field: str, value: str, pattern: re.Pattern[str]) -> None:
    if not pattern.fullmatch(value):
        raise ValidationError(field, "Invalid format")
