"""
Console email sender adapter - Implements EmailSender protocol.

This module provides a console-based implementation of the domain's
email sender port, logging codes and reset links for development.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """
    Implements EmailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Selected when no SMTP host is configured. Never raises DeliveryFailed.
    """

    def send_verification_code(self, email: str, code: str) -> None:
        """
        Log registration code (simulates email delivery).

        Args:
            email: Recipient email address (normalized by domain layer)
            code: 6-digit registration code
        """
        logger.info("[VERIFICATION] Email: %s Code: %s", email, code)

    def send_password_reset(self, email: str, reset_link: str) -> None:
        """
        Log password reset link (simulates email delivery).

        Args:
            email: Recipient email address (normalized by domain layer)
            reset_link: Absolute link carrying token and email
        """
        logger.info("[PASSWORD RESET] Email: %s Link: %s", email, reset_link)
