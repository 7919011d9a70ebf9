"""
Password reset domain service - reset link issuance and password change.

Reset Flow
==========

    request_reset:   validate email -> generate 256-bit token
                     -> store (overwrites previous token)
                     -> build link -> send email
    reset_password:  validate input -> [lock identity] verify token
                     -> update password -> consume token

The link carries exactly two query parameters, token and email, which
are all the verifier needs to locate and check the stored token.
"""

import logging
from dataclasses import dataclass, field
from urllib.parse import parse_qs, urlencode, urlsplit

from .exceptions import DeliveryFailed, ValidationError
from .generators import generate_opaque_token
from .ports import Clock, EmailSender, IdentityProvider, SecretStore, system_clock
from .validation import RESET_TOKEN_PATTERN, normalize_email, require_min_length
from .verification import IdentityLocks, SecretVerifier

logger = logging.getLogger(__name__)

RESET_TTL_SECONDS = 60 * 60
RESET_PATH = "/reset-password"


def build_reset_link(base_url: str, email: str, token: str) -> str:
    """Build <base>/reset-password?token=<token>&email=<email>."""
    query = urlencode({"token": token, "email": email})
    return f"{base_url.rstrip('/')}{RESET_PATH}?{query}"


def parse_reset_link(url: str) -> tuple[str, str]:
    """
    Recover (email, token) from a reset link.

    Raises:
        ValidationError: If either parameter is missing or repeated
    """
    params = parse_qs(urlsplit(url).query)
    email = params.get("email", [])
    token = params.get("token", [])
    if len(email) != 1:
        raise ValidationError("email", "Missing email parameter")
    if len(token) != 1:
        raise ValidationError("token", "Missing token parameter")
    return email[0], token[0]


@dataclass
class PasswordResetService:
    """Domain service for link-based password reset."""

    store: SecretStore
    email_sender: EmailSender
    identity_provider: IdentityProvider
    base_url: str
    clock: Clock = system_clock
    ttl_seconds: int = RESET_TTL_SECONDS
    password_min_length: int = 8
    locks: IdentityLocks = field(default_factory=IdentityLocks)
    verifier: SecretVerifier = field(init=False)

    def __post_init__(self) -> None:
        self.verifier = SecretVerifier(
            store=self.store,
            clock=self.clock,
            secret_pattern=RESET_TOKEN_PATTERN,
            field="token",
        )

    def request_reset(self, email: str) -> str:
        """
        Issue a reset token and email the link.

        The identity provider is not consulted: unknown addresses get a
        token too, which simply can never be redeemed.

        Returns:
            Normalized email address

        Raises:
            ValidationError: If the email is malformed
            DeliveryFailed: If the email could not be sent (token stays stored)
        """
        normalized_email = normalize_email(email)
        token = generate_opaque_token()
        self.store.put(normalized_email, token, self.ttl_seconds)

        reset_link = build_reset_link(self.base_url, normalized_email, token)
        try:
            self.email_sender.send_password_reset(normalized_email, reset_link)
        except DeliveryFailed:
            logger.warning("Reset token for %s stored but not delivered", normalized_email)
            raise
        return normalized_email

    def reset_password(self, email: str, token: str, new_password: str) -> None:
        """
        Verify the token and change the password.

        Raises:
            ValidationError: If the password or token is malformed
            VerificationFailed: If the token is missing, wrong or expired
            IdentityNotFound: If the account no longer exists (token kept)
            UpstreamUnavailable: If the provider is unreachable (token kept)
        """
        normalized_email = normalize_email(email)
        require_min_length("new_password", new_password, self.password_min_length)

        with self.locks.hold(normalized_email):
            self.verifier.verify(normalized_email, token)
            self.identity_provider.update_password(normalized_email, new_password)
            self.verifier.consume(normalized_email)
        logger.info("Password reset completed for %s", normalized_email)
