"""
Registration domain service - OTP issuance and account creation.

This module contains the business logic for registering a student
account by proving control of an email inbox.

Registration Flow
=================

    request_code:  validate email -> generate 6-digit code
                   -> store (overwrites previous code) -> send email
    register:      validate input -> verify code -> create account
                   -> consume code

Ordering rules:
- The code is consumed only after the identity provider created the
  account. IdentityConflict or an unreachable provider leaves the code
  stored, so the same code can be retried until it expires.
- A delivery failure leaves the freshly stored code valid. Requesting a
  new code simply overwrites it.
- verify, create and consume run under a per-identity lock, so one code
  backs at most one account creation even under concurrent submissions.
- request_code never consults the identity provider, so its outcome does
  not reveal whether an address is already registered.
"""

import logging
from dataclasses import dataclass, field

from .exceptions import DeliveryFailed
from .generators import generate_numeric_code
from .ports import Clock, EmailSender, IdentityProvider, SecretStore, system_clock
from .validation import OTP_PATTERN, normalize_email, require_min_length
from .verification import IdentityLocks, SecretVerifier

logger = logging.getLogger(__name__)

OTP_TTL_SECONDS = 5 * 60


@dataclass
class RegistrationService:
    """
    Domain service for OTP-based registration.

    Orchestrates code issuance, verification and account creation.
    """

    store: SecretStore
    email_sender: EmailSender
    identity_provider: IdentityProvider
    clock: Clock = system_clock
    ttl_seconds: int = OTP_TTL_SECONDS
    password_min_length: int = 8
    display_name_min_length: int = 3
    locks: IdentityLocks = field(default_factory=IdentityLocks)
    verifier: SecretVerifier = field(init=False)

    def __post_init__(self) -> None:
        self.verifier = SecretVerifier(
            store=self.store, clock=self.clock, secret_pattern=OTP_PATTERN, field="otp"
        )

    def request_code(self, email: str) -> str:
        """
        Issue a registration code and email it.

        Args:
            email: User's email address (will be normalized)

        Returns:
            Normalized email address

        Raises:
            ValidationError: If the email is malformed
            DeliveryFailed: If the email could not be sent (code stays stored)
        """
        normalized_email = normalize_email(email)
        code = generate_numeric_code()
        self.store.put(normalized_email, code, self.ttl_seconds)

        try:
            self.email_sender.send_verification_code(normalized_email, code)
        except DeliveryFailed:
            logger.warning("Registration code for %s stored but not delivered", normalized_email)
            raise
        return normalized_email

    def register(self, email: str, display_name: str, password: str, otp: str) -> str:
        """
        Verify the code and create the account.

        Args:
            email: User's email (will be normalized)
            display_name: Full name shown on the account
            password: Plaintext password handed to the identity provider
            otp: 6-digit code from the email

        Returns:
            uid of the created account

        Raises:
            ValidationError: If any field is malformed
            VerificationFailed: If the code is missing, wrong or expired
            IdentityConflict: If the account already exists (code kept)
            UpstreamUnavailable: If the provider is unreachable (code kept)
        """
        normalized_email = normalize_email(email)
        require_min_length("display_name", display_name.strip(), self.display_name_min_length)
        require_min_length("password", password, self.password_min_length)

        with self.locks.hold(normalized_email):
            self.verifier.verify(normalized_email, otp)
            uid = self.identity_provider.create_user(
                normalized_email, password, display_name.strip()
            )
            self.verifier.consume(normalized_email)
        logger.info("Account created for %s (uid=%s)", normalized_email, uid)
        return uid
