"""
Domain layer - Pure business logic with zero framework imports.

This package contains the OTP registration and password reset workflows.
It defines its own port interfaces for infrastructure abstraction,
ensuring true hexagonal architecture decoupling.
"""

from .chat import ChatService
from .exceptions import (
    AccountFlowError,
    DeliveryFailed,
    IdentityConflict,
    IdentityNotFound,
    SecretExpired,
    SecretMismatch,
    SecretNotFound,
    UpstreamUnavailable,
    ValidationError,
    VerificationFailed,
)
from .password_reset import PasswordResetService, build_reset_link, parse_reset_link
from .ports import (
    ChatAssistant,
    Clock,
    EmailSender,
    IdentityProvider,
    PendingSecret,
    SecretStore,
    Workflow,
    system_clock,
)
from .registration import RegistrationService
from .verification import IdentityLocks, SecretVerifier

__all__ = [
    "AccountFlowError",
    "ChatAssistant",
    "ChatService",
    "Clock",
    "DeliveryFailed",
    "EmailSender",
    "IdentityConflict",
    "IdentityLocks",
    "IdentityNotFound",
    "IdentityProvider",
    "PasswordResetService",
    "PendingSecret",
    "RegistrationService",
    "SecretExpired",
    "SecretMismatch",
    "SecretNotFound",
    "SecretStore",
    "SecretVerifier",
    "UpstreamUnavailable",
    "ValidationError",
    "VerificationFailed",
    "Workflow",
    "build_reset_link",
    "parse_reset_link",
    "system_clock",
]
