"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable millisecond clock
- In-memory secret stores and identity provider
- A FastAPI app wired with in-memory adapters
"""

from collections.abc import Iterator
from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.adapters.repository.memory import InMemoryIdentityProvider, InMemorySecretStore
from src.api.dependencies import wire_adapters
from src.api.errors import register_exception_handlers
from src.api.v1 import router
from src.config.settings import Settings, get_settings

START_MILLIS = 1_700_000_000_000


class FakeClock:
    """Clock returning a settable epoch-millisecond value."""

    def __init__(self, now: int = START_MILLIS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemorySecretStore:
    return InMemorySecretStore(clock)


@pytest.fixture
def identity_provider() -> InMemoryIdentityProvider:
    # Minimum bcrypt cost keeps the suite fast
    return InMemoryIdentityProvider(bcrypt_cost=4)


@pytest.fixture
def email_sender() -> Mock:
    return Mock()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        backend="memory",
        bcrypt_cost=4,
        base_url="https://learnset.example",
        smtp_host=None,
    )


@pytest.fixture
def app(test_settings: Settings, clock: FakeClock) -> Iterator[FastAPI]:
    """FastAPI app with in-memory adapters and a fake clock."""
    test_app = FastAPI()
    register_exception_handlers(test_app)
    test_app.include_router(router, prefix="/v1")

    wire_adapters(test_app.state, test_settings)
    test_app.state.clock = clock
    test_app.state.registration_store = InMemorySecretStore(clock)
    test_app.state.reset_store = InMemorySecretStore(clock)
    test_app.dependency_overrides[get_settings] = lambda: test_settings

    yield test_app

    test_app.dependency_overrides.clear()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
