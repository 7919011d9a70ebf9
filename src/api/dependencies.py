"""
FastAPI dependencies - Dependency injection factories.

This module wires infrastructure adapters into app.state at startup and
provides Depends() factories for injecting domain services into routes.
"""

from typing import Any

from fastapi import Depends, Request
from psycopg_pool import ConnectionPool

from src.adapters.chat import CannedChatAssistant
from src.adapters.repository import (
    InMemoryIdentityProvider,
    InMemorySecretStore,
    PostgresIdentityProvider,
    PostgresSecretStore,
)
from src.adapters.smtp import ConsoleEmailSender, SmtpEmailSender
from src.config.settings import Settings, get_settings
from src.domain.chat import ChatService
from src.domain.password_reset import PasswordResetService
from src.domain.ports import EmailSender, Workflow, system_clock
from src.domain.registration import RegistrationService
from src.domain.verification import IdentityLocks


def build_email_sender(settings: Settings) -> EmailSender:
    """Use SMTP when a host is configured, otherwise log to console."""
    if not settings.smtp_host:
        return ConsoleEmailSender()
    return SmtpEmailSender(
        host=settings.smtp_host,
        port=settings.smtp_port,
        sender=settings.email_from,
        username=settings.smtp_username,
        password=settings.smtp_password,
        use_ssl=settings.smtp_use_ssl,
        starttls=settings.smtp_starttls,
        timeout_seconds=settings.smtp_timeout_seconds,
        otp_ttl_minutes=settings.otp_ttl_seconds // 60,
        reset_ttl_minutes=settings.reset_ttl_seconds // 60,
    )


def wire_adapters(state: Any, settings: Settings, pool: ConnectionPool | None = None) -> None:
    """
    Attach adapters to app.state.

    With a pool, secrets and accounts live in PostgreSQL; without one,
    in process memory.
    """
    state.clock = system_clock
    if pool is not None:
        state.pool = pool
        state.registration_store = PostgresSecretStore(pool, Workflow.REGISTRATION)
        state.reset_store = PostgresSecretStore(pool, Workflow.PASSWORD_RESET)
        state.identity_provider = PostgresIdentityProvider(pool, settings.bcrypt_cost)
    else:
        state.pool = None
        state.registration_store = InMemorySecretStore()
        state.reset_store = InMemorySecretStore()
        state.identity_provider = InMemoryIdentityProvider(settings.bcrypt_cost)
    # Shared across requests: services are built per request
    state.registration_locks = IdentityLocks()
    state.reset_locks = IdentityLocks()
    state.email_sender = build_email_sender(settings)
    state.chat_assistant = CannedChatAssistant()


def get_registration_service(
    request: Request, settings: Settings = Depends(get_settings)
) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires together the secret store, email sender and identity provider.
    """
    state = request.app.state
    return RegistrationService(
        store=state.registration_store,
        email_sender=state.email_sender,
        identity_provider=state.identity_provider,
        clock=state.clock,
        ttl_seconds=settings.otp_ttl_seconds,
        password_min_length=settings.password_min_length,
        display_name_min_length=settings.display_name_min_length,
        locks=state.registration_locks,
    )


def get_password_reset_service(
    request: Request, settings: Settings = Depends(get_settings)
) -> PasswordResetService:
    """Create password reset service with injected dependencies."""
    state = request.app.state
    return PasswordResetService(
        store=state.reset_store,
        email_sender=state.email_sender,
        identity_provider=state.identity_provider,
        base_url=settings.base_url,
        clock=state.clock,
        ttl_seconds=settings.reset_ttl_seconds,
        password_min_length=settings.password_min_length,
        locks=state.reset_locks,
    )


def get_chat_service(request: Request, settings: Settings = Depends(get_settings)) -> ChatService:
    """Create chat service around the configured assistant."""
    return ChatService(
        assistant=request.app.state.chat_assistant,
        max_prompt_chars=settings.chat_max_prompt_chars,
    )
