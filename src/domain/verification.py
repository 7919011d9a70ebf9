"""
Verification engine - shared check for OTP codes and reset tokens.

Verification State Machine (per attempt)
========================================

    format check  -> ValidationError   (store untouched)
    lookup        -> SecretNotFound    (no entry for identity)
    equality      -> SecretMismatch    (constant-time comparison)
    expiry        -> SecretExpired     (entry deleted as cleanup)
    success       -> entry returned, still stored

The entry is consumed by the caller only after the account mutation
succeeds, so a failed mutation can be retried with the same secret.
Callers hold IdentityLocks.hold(identity) around verify -> mutate ->
consume so two requests cannot redeem one secret concurrently.
"""

import logging
import re
import secrets
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from .exceptions import SecretExpired, SecretMismatch, SecretNotFound
from .ports import Clock, PendingSecret, SecretStore
from .validation import require_pattern

logger = logging.getLogger(__name__)


@dataclass
class _HeldLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    waiters: int = 0


class IdentityLocks:
    """
    Per-identity mutual exclusion for one workflow.

    Shared by every service instance of the workflow (services are built
    per request). Entries are dropped once no thread holds or awaits them.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._held: dict[str, _HeldLock] = {}

    @contextmanager
    def hold(self, identity: str) -> Iterator[None]:
        with self._guard:
            entry = self._held.setdefault(identity, _HeldLock())
            entry.waiters += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.waiters -= 1
                if entry.waiters == 0:
                    del self._held[identity]

    def __len__(self) -> int:
        with self._guard:
            return len(self._held)


@dataclass
class SecretVerifier:
    """Checks (identity, secret) pairs against a workflow's secret store."""

    store: SecretStore
    clock: Clock
    secret_pattern: re.Pattern[str]
    field: str

    def verify(self, identity: str, supplied: str) -> PendingSecret:
        """
        Verify a supplied secret without consuming it.

        Args:
            identity: Normalized email address
            supplied: Secret submitted by the client

        Returns:
            The matching, unexpired PendingSecret

        Raises:
            ValidationError: Supplied secret has the wrong shape
            SecretNotFound: No pending secret for the identity
            SecretMismatch: Pending secret differs from the supplied one
            SecretExpired: Pending secret matched but has expired
        """
        require_pattern(self.field, supplied, self.secret_pattern)

        pending = self.store.get(identity)
        if pending is None:
            logger.info("Verification failed for %s: no pending %s", identity, self.field)
            raise SecretNotFound(identity)

        if not secrets.compare_digest(pending.secret.encode(), supplied.encode()):
            logger.info("Verification failed for %s: %s mismatch", identity, self.field)
            raise SecretMismatch(identity)

        if pending.is_expired(self.clock()):
            # Lazy cleanup: expired entries are removed when touched
            self.store.delete(identity)
            logger.info("Verification failed for %s: %s expired", identity, self.field)
            raise SecretExpired(identity)

        return pending

    def consume(self, identity: str) -> None:
        """Delete the pending secret after a successful mutation."""
        self.store.delete(identity)
