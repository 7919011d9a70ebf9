"""Unit tests for InMemoryIdentityProvider adapter."""

import pytest

from src.adapters.repository.memory import InMemoryIdentityProvider
from src.domain.exceptions import IdentityConflict, IdentityNotFound


class TestCreateUser:
    def test_returns_uid(self, identity_provider: InMemoryIdentityProvider) -> None:
        uid = identity_provider.create_user("a@x.com", "password123", "Alice")

        assert isinstance(uid, str)
        assert len(uid) == 32

    def test_password_is_hashed(self, identity_provider: InMemoryIdentityProvider) -> None:
        identity_provider.create_user("a@x.com", "password123", "Alice")

        assert identity_provider.verify_password("a@x.com", "password123")
        assert not identity_provider.verify_password("a@x.com", "wrong-password")

    def test_duplicate_raises_conflict(self, identity_provider: InMemoryIdentityProvider) -> None:
        identity_provider.create_user("a@x.com", "password123", "Alice")

        with pytest.raises(IdentityConflict):
            identity_provider.create_user("a@x.com", "password456", "Alice Again")

        # Original password untouched
        assert identity_provider.verify_password("a@x.com", "password123")


class TestUpdatePassword:
    def test_updates_hash(self, identity_provider: InMemoryIdentityProvider) -> None:
        identity_provider.create_user("a@x.com", "password123", "Alice")

        identity_provider.update_password("a@x.com", "new-password")

        assert identity_provider.verify_password("a@x.com", "new-password")
        assert not identity_provider.verify_password("a@x.com", "password123")

    def test_unknown_email_raises_not_found(
        self, identity_provider: InMemoryIdentityProvider
    ) -> None:
        with pytest.raises(IdentityNotFound):
            identity_provider.update_password("ghost@x.com", "new-password")

    def test_verify_password_unknown_email(
        self, identity_provider: InMemoryIdentityProvider
    ) -> None:
        assert identity_provider.verify_password("ghost@x.com", "anything") is False
