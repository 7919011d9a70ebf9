"""
In-memory adapters - SecretStore and IdentityProvider for single-instance use.

State lives in process memory and is lost on restart. Suitable for
development, tests, and single-worker deployments only.

There is no background sweep: an expired entry stays until a
verification attempt touches it or a new secret overwrites it.
"""

import logging
import threading
import uuid
from dataclasses import dataclass

import bcrypt

from src.domain.exceptions import IdentityConflict, IdentityNotFound
from src.domain.ports import Clock, PendingSecret, system_clock

logger = logging.getLogger(__name__)


class InMemorySecretStore:
    """
    Implements SecretStore protocol with a lock-guarded dict.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, clock: Clock = system_clock) -> None:
        self._clock = clock
        self._entries: dict[str, PendingSecret] = {}
        self._lock = threading.Lock()

    def put(self, identity: str, secret: str, ttl_seconds: int) -> PendingSecret:
        pending = PendingSecret(
            identity=identity,
            secret=secret,
            expires_at=self._clock() + ttl_seconds * 1000,
        )
        with self._lock:
            self._entries[identity] = pending
        return pending

    def get(self, identity: str) -> PendingSecret | None:
        with self._lock:
            return self._entries.get(identity)

    def delete(self, identity: str) -> None:
        with self._lock:
            self._entries.pop(identity, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


@dataclass
class _Account:
    uid: str
    email: str
    display_name: str
    password_hash: str


class InMemoryIdentityProvider:
    """Implements IdentityProvider protocol with bcrypt-hashed accounts in a dict."""

    def __init__(self, bcrypt_cost: int = 10) -> None:
        self._bcrypt_cost = bcrypt_cost
        self._accounts: dict[str, _Account] = {}
        self._lock = threading.Lock()

    def create_user(self, email: str, password: str, display_name: str) -> str:
        password_hash = self._hash_password(password)
        with self._lock:
            if email in self._accounts:
                raise IdentityConflict(email)
            account = _Account(
                uid=uuid.uuid4().hex,
                email=email,
                display_name=display_name,
                password_hash=password_hash,
            )
            self._accounts[email] = account
        return account.uid

    def update_password(self, email: str, new_password: str) -> None:
        password_hash = self._hash_password(new_password)
        with self._lock:
            account = self._accounts.get(email)
            if account is None:
                raise IdentityNotFound(email)
            account.password_hash = password_hash

    def verify_password(self, email: str, password: str) -> bool:
        """Check a password against the stored hash (False for unknown emails)."""
        with self._lock:
            account = self._accounts.get(email)
        if account is None:
            return False
        return bcrypt.checkpw(password.encode(), account.password_hash.encode())

    def _hash_password(self, password: str) -> str:
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=self._bcrypt_cost)).decode()
