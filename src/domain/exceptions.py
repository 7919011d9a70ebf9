"""
Domain exceptions - Semantic error types for the account secret workflows.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
The API layer decides which of them share a user-facing message.
"""


class AccountFlowError(Exception):
    """Base class for OTP and password-reset domain errors."""

    pass


class ValidationError(AccountFlowError):
    """Malformed input (email shape, password policy, secret format)."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class VerificationFailed(AccountFlowError):
    """Supplied secret could not be verified for the identity."""

    pass


class SecretNotFound(VerificationFailed):
    """No pending secret exists for the identity."""

    pass


class SecretMismatch(VerificationFailed):
    """A pending secret exists but does not match the supplied value."""

    pass


class SecretExpired(VerificationFailed):
    """The pending secret matched but its expiry has passed."""

    pass


class DeliveryFailed(AccountFlowError):
    """Email transport rejected or could not deliver the message."""

    pass


class IdentityConflict(AccountFlowError):
    """An account already exists for the email address."""

    pass


class IdentityNotFound(AccountFlowError):
    """No account exists for the email address."""

    pass


class UpstreamUnavailable(AccountFlowError):
    """Identity provider, secret store or chat backend is unreachable."""

    pass
