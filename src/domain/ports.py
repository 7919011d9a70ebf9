"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

# Returns the current time in epoch milliseconds.
Clock = Callable[[], int]


def system_clock() -> int:
    """Wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


class Workflow(str, Enum):
    """
    Secret workflows sharing the store abstraction.

    Each workflow keeps at most one pending secret per identity.
    """

    REGISTRATION = "registration"
    PASSWORD_RESET = "password_reset"


@dataclass(frozen=True)
class PendingSecret:
    """One outstanding OTP or reset token."""

    identity: str
    secret: str
    expires_at: int  # epoch milliseconds

    def is_expired(self, now: int) -> bool:
        """A secret is still valid at exactly expires_at."""
        return now > self.expires_at


class SecretStore(Protocol):
    """Port interface for pending secret persistence (one per workflow)."""

    def put(self, identity: str, secret: str, ttl_seconds: int) -> PendingSecret:
        """
        Store a secret for the identity, replacing any existing one.

        Any previously issued secret for the identity becomes invalid,
        even if it has not expired yet.

        Args:
            identity: Normalized email address
            secret: OTP code or reset token
            ttl_seconds: Validity window from now

        Returns:
            The stored PendingSecret
        """
        ...

    def get(self, identity: str) -> PendingSecret | None:
        """Return the pending secret for the identity, if any."""
        ...

    def delete(self, identity: str) -> None:
        """Remove the pending secret. Deleting an absent entry is a no-op."""
        ...


class EmailSender(Protocol):
    """Port interface for email delivery."""

    def send_verification_code(self, email: str, code: str) -> None:
        """
        Send registration OTP to email address.

        Raises:
            DeliveryFailed: If the transport could not send the message
        """
        ...

    def send_password_reset(self, email: str, reset_link: str) -> None:
        """
        Send password reset link to email address.

        Raises:
            DeliveryFailed: If the transport could not send the message
        """
        ...


class IdentityProvider(Protocol):
    """Port interface for the system of record for user accounts."""

    def create_user(self, email: str, password: str, display_name: str) -> str:
        """
        Create an account and return its uid.

        Raises:
            IdentityConflict: If an account already exists for the email
            UpstreamUnavailable: If the provider cannot be reached
        """
        ...

    def update_password(self, email: str, new_password: str) -> None:
        """
        Replace the password of an existing account.

        Raises:
            IdentityNotFound: If no account exists for the email
            UpstreamUnavailable: If the provider cannot be reached
        """
        ...


class ChatAssistant(Protocol):
    """Port interface for the AI chat backend."""

    def reply(self, prompt: str) -> str:
        """
        Return the assistant's answer for the prompt.

        Raises:
            UpstreamUnavailable: If the backend cannot answer
        """
        ...
