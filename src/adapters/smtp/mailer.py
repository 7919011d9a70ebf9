"""
SMTP email sender adapter - Implements EmailSender protocol.

Sends transactional HTML emails via smtplib. Any transport error is
raised as DeliveryFailed; the caller keeps the stored secret valid.
"""

import logging
import smtplib
from email.message import EmailMessage
from html import escape

from src.domain.exceptions import DeliveryFailed

logger = logging.getLogger(__name__)

_FOOTER = (
    '<hr style="border: none; border-top: 1px solid #eee; margin: 20px 0;"/>'
    '<p style="font-size: 0.9em; text-align: center; color: #666;">'
    "This is an automated message. Please do not reply.</p>"
)

_CONTAINER = (
    '<div style="font-family: sans-serif; max-width: 600px; margin: auto; '
    'padding: 20px; border: 1px solid #ddd; border-radius: 5px;">{body}' + _FOOTER + "</div>"
)


def render_verification_code(code: str, ttl_minutes: int) -> tuple[str, str]:
    """Return (plain text, html) bodies for the registration OTP email."""
    text = (
        f"Your one-time password is {code}.\n"
        f"It is valid for {ttl_minutes} minutes. "
        "If you did not request this, please ignore this email."
    )
    html = _CONTAINER.format(
        body=(
            '<h2 style="text-align: center; color: #333;">Welcome!</h2>'
            "<p>Thank you for registering. Please use the following One-Time Password "
            "(OTP) to complete your registration:</p>"
            '<p style="text-align: center; font-size: 24px; font-weight: bold; '
            f'color: #007BFF;">{escape(code)}</p>'
            f"<p>This OTP is valid for {ttl_minutes} minutes. "
            "If you did not request this, please ignore this email.</p>"
        )
    )
    return text, html


def render_password_reset(reset_link: str, ttl_minutes: int) -> tuple[str, str]:
    """Return (plain text, html) bodies for the password reset email."""
    validity = "1 hour" if ttl_minutes == 60 else f"{ttl_minutes} minutes"
    text = (
        "You recently requested to reset your password. Open the link below to proceed:\n"
        f"{reset_link}\n"
        f"This link is valid for {validity}. "
        "If you did not request a password reset, please ignore this email."
    )
    html = _CONTAINER.format(
        body=(
            '<h2 style="text-align: center; color: #333;">Password Reset Request</h2>'
            "<p>You recently requested to reset your password. "
            "Please click the button below to proceed.</p>"
            f'<a href="{escape(reset_link, quote=True)}" style="display: block; width: 200px; '
            "margin: 20px auto; padding: 10px 20px; background-color: #007BFF; color: white; "
            'text-align: center; text-decoration: none; border-radius: 5px;">Reset Password</a>'
            "<p>If you did not request a password reset, please ignore this email.</p>"
            f"<p>This link is valid for {validity}.</p>"
        )
    )
    return text, html


class SmtpEmailSender:
    """
    Implements EmailSender protocol via smtplib.

    Opens one connection per message; the workflow sends at most one
    email per request.
    """

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: str | None = None,
        password: str | None = None,
        use_ssl: bool = True,
        starttls: bool = False,
        timeout_seconds: float = 10.0,
        otp_ttl_minutes: int = 5,
        reset_ttl_minutes: int = 60,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._username = username
        self._password = password
        self._use_ssl = use_ssl
        self._starttls = starttls
        self._timeout = timeout_seconds
        self._otp_ttl_minutes = otp_ttl_minutes
        self._reset_ttl_minutes = reset_ttl_minutes

    def send_verification_code(self, email: str, code: str) -> None:
        text, html = render_verification_code(code, self._otp_ttl_minutes)
        self._send(email, "Your One-Time Password (OTP) for Registration", text, html)

    def send_password_reset(self, email: str, reset_link: str) -> None:
        text, html = render_password_reset(reset_link, self._reset_ttl_minutes)
        self._send(email, "Password Reset Request", text, html)

    def _send(self, recipient: str, subject: str, text: str, html: str) -> None:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self._sender
        msg["To"] = recipient
        msg.set_content(text)
        msg.add_alternative(html, subtype="html")

        smtp_class = smtplib.SMTP_SSL if self._use_ssl else smtplib.SMTP
        try:
            with smtp_class(self._host, self._port, timeout=self._timeout) as server:
                if self._starttls and not self._use_ssl:
                    server.starttls()
                if self._username and self._password:
                    server.login(self._username, self._password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Email delivery to %s failed: %s", recipient, e)
            raise DeliveryFailed(recipient) from e

        logger.info("Email '%s' sent to %s", subject, recipient)
