"""
PostgreSQL adapters - Implement SecretStore and IdentityProvider protocols.

This module provides the PostgreSQL implementations of the domain's
persistence ports using psycopg3 with raw SQL.

Concurrency Design:
-------------------
- pending_secrets is keyed by (workflow, identity). put() is a single
  INSERT ... ON CONFLICT DO UPDATE, so concurrent issuance for the same
  identity resolves to whichever write lands last.
- accounts.email is UNIQUE. create_user() relies on ON CONFLICT DO NOTHING
  so two concurrent registrations cannot both create the account.

Connectivity failures (OperationalError, pool timeouts) are raised as
UpstreamUnavailable; the domain never sees psycopg exceptions.
"""

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import bcrypt
import psycopg
from psycopg_pool import ConnectionPool, PoolTimeout

from src.domain.exceptions import IdentityConflict, IdentityNotFound, UpstreamUnavailable
from src.domain.ports import Clock, PendingSecret, Workflow, system_clock

logger = logging.getLogger(__name__)


@contextmanager
def _connection(pool: ConnectionPool) -> Iterator[psycopg.Connection]:
    """Borrow a pooled connection, translating connectivity errors."""
    try:
        with pool.connection() as conn:
            yield conn
    except (psycopg.OperationalError, PoolTimeout) as e:
        logger.error("Database unavailable: %s", e)
        raise UpstreamUnavailable("database") from e


def check_connection(pool: ConnectionPool) -> None:
    """Round-trip SELECT 1; raises UpstreamUnavailable when the database is down."""
    with _connection(pool) as conn:
        conn.execute("SELECT 1")


class PostgresSecretStore:
    """
    Implements SecretStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    One instance serves one workflow; rows of other workflows are invisible.
    """

    def __init__(
        self, pool: ConnectionPool, workflow: Workflow, clock: Clock = system_clock
    ) -> None:
        """
        Initialize store with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
            workflow: Workflow whose secrets this store holds
            clock: Source of epoch milliseconds used to compute expires_at
        """
        self._pool = pool
        self._workflow = workflow
        self._clock = clock

    def put(self, identity: str, secret: str, ttl_seconds: int) -> PendingSecret:
        """Upsert the secret; any previous secret for the identity is replaced."""
        sql = """
            INSERT INTO pending_secrets (workflow, identity, secret, expires_at)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (workflow, identity) DO UPDATE
            SET secret = EXCLUDED.secret,
                expires_at = EXCLUDED.expires_at
        """
        expires_at = self._clock() + ttl_seconds * 1000

        with _connection(self._pool) as conn, conn.cursor() as cursor:
            cursor.execute(sql, (self._workflow.value, identity, secret, expires_at))
            conn.commit()

        return PendingSecret(identity=identity, secret=secret, expires_at=expires_at)

    def get(self, identity: str) -> PendingSecret | None:
        sql = """
            SELECT secret, expires_at
            FROM pending_secrets
            WHERE workflow = %s AND identity = %s
        """

        with _connection(self._pool) as conn, conn.cursor() as cursor:
            cursor.execute(sql, (self._workflow.value, identity))
            row = cursor.fetchone()

        if row is None:
            return None
        return PendingSecret(identity=identity, secret=row[0], expires_at=row[1])

    def delete(self, identity: str) -> None:
        sql = "DELETE FROM pending_secrets WHERE workflow = %s AND identity = %s"

        with _connection(self._pool) as conn:
            conn.execute(sql, (self._workflow.value, identity))
            conn.commit()


class PostgresIdentityProvider:
    """
    Implements IdentityProvider protocol via psycopg3.

    Passwords are stored as bcrypt hashes; plaintext never reaches the database.
    """

    def __init__(self, pool: ConnectionPool, bcrypt_cost: int = 10) -> None:
        self._pool = pool
        self._bcrypt_cost = bcrypt_cost

    def create_user(self, email: str, password: str, display_name: str) -> str:
        """
        Insert a new account row.

        Uses INSERT ... ON CONFLICT DO NOTHING; an empty RETURNING means
        the email is already taken.

        Raises:
            IdentityConflict: If an account with this email exists
        """
        sql = """
            INSERT INTO accounts (uid, email, display_name, password_hash)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (email) DO NOTHING
            RETURNING uid
        """
        uid = uuid.uuid4().hex
        password_hash = self._hash_password(password)

        with _connection(self._pool) as conn, conn.cursor() as cursor:
            cursor.execute(sql, (uid, email, display_name, password_hash))
            row = cursor.fetchone()
            conn.commit()

        if row is None:
            raise IdentityConflict(email)
        return row[0]

    def update_password(self, email: str, new_password: str) -> None:
        """
        Replace the stored password hash.

        Raises:
            IdentityNotFound: If no account row matches the email
        """
        sql = """
            UPDATE accounts
            SET password_hash = %s, updated_at = NOW()
            WHERE email = %s
        """
        password_hash = self._hash_password(new_password)

        with _connection(self._pool) as conn, conn.cursor() as cursor:
            cursor.execute(sql, (password_hash, email))
            conn.commit()
            updated = cursor.rowcount

        if updated == 0:
            raise IdentityNotFound(email)

    def verify_password(self, email: str, password: str) -> bool:
        """Check a password against the stored hash (False for unknown emails)."""
        sql = "SELECT password_hash FROM accounts WHERE email = %s"

        with _connection(self._pool) as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email,))
            row = cursor.fetchone()

        if row is None:
            return False
        return bcrypt.checkpw(password.encode(), row[0].encode())

    def _hash_password(self, password: str) -> str:
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=self._bcrypt_cost)).decode()


MIGRATIONS_DIR = Path(__file__).resolve().parents[3] / "migrations"


def run_migrations(pool: ConnectionPool, migrations_dir: Path = MIGRATIONS_DIR) -> None:
    """
    Apply every migrations/*.sql file in filename order.

    Files must be idempotent (CREATE TABLE IF NOT EXISTS ...): they run
    on every startup of the postgres backend.

    Raises:
        UpstreamUnavailable: If the database cannot be reached
        RuntimeError: If a migration statement fails
    """
    if not migrations_dir.is_dir():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))
    logger.info("Applying %d migration(s) from %s", len(sql_files), migrations_dir)

    for sql_file in sql_files:
        with _connection(pool) as conn:
            try:
                conn.execute(sql_file.read_text())
            except psycopg.OperationalError:
                raise
            except psycopg.Error as e:
                logger.error("Migration %s failed: %s", sql_file.name, e)
                raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
        logger.info("Applied migration %s", sql_file.name)
