"""
Secret generation for OTP codes and password reset tokens.

Both generators draw from the secrets module (OS CSPRNG). An
exhausted entropy source surfaces as the OS error, it is not caught.
"""

import secrets

OTP_LOWER_BOUND = 100_000
OTP_UPPER_BOUND = 999_999
RESET_TOKEN_BYTES = 32


def generate_numeric_code() -> str:
    """
    Generate a 6-digit code uniform over [100000, 999999].

    The range has no leading zeros, so the string is always 6 characters.
    """
    return str(OTP_LOWER_BOUND + secrets.randbelow(OTP_UPPER_BOUND - OTP_LOWER_BOUND + 1))


def generate_opaque_token() -> str:
    """Generate a 256-bit token, hex encoded (64 characters, URL safe)."""
    return secrets.token_hex(RESET_TOKEN_BYTES)
