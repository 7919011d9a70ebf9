"""Repository adapters - Secret store and identity provider implementations."""

from .memory import InMemoryIdentityProvider, InMemorySecretStore
from .postgres import (
    PostgresIdentityProvider,
    PostgresSecretStore,
    check_connection,
    run_migrations,
)

__all__ = [
    "InMemoryIdentityProvider",
    "InMemorySecretStore",
    "PostgresIdentityProvider",
    "PostgresSecretStore",
    "check_connection",
    "run_migrations",
]
