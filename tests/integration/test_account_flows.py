"""
Integration tests for the OTP registration and password reset flows.

Drives the full stack (routes -> services -> in-memory adapters) through
the HTTP API with a controllable clock.
"""

import logging
import re
from unittest.mock import MagicMock

import psycopg
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.errors import UNAVAILABLE_MESSAGE
from src.api.main import app as main_app
from src.config.settings import Settings
from src.domain.password_reset import parse_reset_link
from tests.conftest import FakeClock

OTP_TTL_MILLIS = 5 * 60 * 1000
RESET_TTL_MILLIS = 60 * 60 * 1000


def issue_code(client: TestClient, app: FastAPI, email: str) -> str:
    response = client.post("/v1/otp", json={"email": email})
    assert response.status_code == 200
    return app.state.registration_store.get(email.strip().lower()).secret


def issue_token(client: TestClient, app: FastAPI, email: str) -> str:
    response = client.post("/v1/password-reset", json={"email": email})
    assert response.status_code == 200
    return app.state.reset_store.get(email.strip().lower()).secret


def register(client: TestClient, email: str, otp: str, password: str = "password123"):
    return client.post(
        "/v1/register",
        json={"email": email, "display_name": "A Student", "password": password, "otp": otp},
    )


def confirm_reset(client: TestClient, email: str, token: str, new_password: str = "new-password-1"):
    return client.post(
        "/v1/password-reset/confirm",
        json={"email": email, "token": token, "new_password": new_password},
    )


class TestRegistrationFlow:
    """End-to-end: request code -> register."""

    def test_wrong_code_then_right_code(self, client: TestClient, app: FastAPI) -> None:
        client.post("/v1/otp", json={"email": "a@x.com"})
        app.state.registration_store.put("a@x.com", "123456", 300)

        wrong = register(client, "a@x.com", "000000")
        assert wrong.status_code == 401
        assert wrong.json() == {"detail": "Invalid or expired code"}

        right = register(client, "a@x.com", "123456")
        assert right.status_code == 201
        assert right.json()["uid"]
        assert app.state.registration_store.get("a@x.com") is None
        assert app.state.identity_provider.verify_password("a@x.com", "password123")

    def test_code_from_console_email(
        self, client: TestClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        """The code logged by the console sender completes registration."""
        with caplog.at_level(logging.INFO):
            client.post("/v1/otp", json={"email": "logged@x.com"})

        match = re.search(r"Email: logged@x\.com Code: (\d{6})", caplog.text)
        assert match is not None

        assert register(client, "logged@x.com", match.group(1)).status_code == 201

    def test_code_is_single_use(self, client: TestClient, app: FastAPI) -> None:
        code = issue_code(client, app, "a@x.com")

        assert register(client, "a@x.com", code).status_code == 201
        assert register(client, "a@x.com", code).status_code == 401

    def test_new_code_invalidates_previous(self, client: TestClient, app: FastAPI) -> None:
        first = issue_code(client, app, "a@x.com")
        second = issue_code(client, app, "a@x.com")
        while second == first:
            second = issue_code(client, app, "a@x.com")

        assert register(client, "a@x.com", first).status_code == 401
        assert register(client, "a@x.com", second).status_code == 201

    def test_expiry_boundary(self, client: TestClient, app: FastAPI, clock: FakeClock) -> None:
        code = issue_code(client, app, "early@x.com")
        clock.advance(OTP_TTL_MILLIS - 1)
        assert register(client, "early@x.com", code).status_code == 201

        code = issue_code(client, app, "late@x.com")
        clock.advance(OTP_TTL_MILLIS + 1)
        response = register(client, "late@x.com", code)

        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid or expired code"}
        assert app.state.registration_store.get("late@x.com") is None

    def test_configured_length_policy_applies(
        self, client: TestClient, app: FastAPI, test_settings: Settings
    ) -> None:
        test_settings.password_min_length = 6
        test_settings.display_name_min_length = 2
        code = issue_code(client, app, "al@x.com")

        response = client.post(
            "/v1/register",
            json={"email": "al@x.com", "display_name": "Al", "password": "abcdef", "otp": code},
        )

        assert response.status_code == 201

    def test_short_password_rejected_with_field(self, client: TestClient, app: FastAPI) -> None:
        code = issue_code(client, app, "a@x.com")

        response = register(client, "a@x.com", code, password="short")

        assert response.status_code == 422
        assert response.json() == {"detail": "Must be at least 8 characters", "field": "password"}

    def test_existing_account_returns_409_and_keeps_code(
        self, client: TestClient, app: FastAPI
    ) -> None:
        app.state.identity_provider.create_user("a@x.com", "password123", "Existing")
        code = issue_code(client, app, "a@x.com")

        response = register(client, "a@x.com", code)

        assert response.status_code == 409
        assert app.state.registration_store.get("a@x.com") is not None


class TestPasswordResetFlow:
    """End-to-end: request link -> confirm."""

    @pytest.fixture(autouse=True)
    def existing_account(self, app: FastAPI) -> None:
        app.state.identity_provider.create_user("b@x.com", "old-password", "Bea")

    def test_second_link_wins(self, client: TestClient, app: FastAPI) -> None:
        token1 = issue_token(client, app, "b@x.com")
        token2 = issue_token(client, app, "b@x.com")

        stale = confirm_reset(client, "b@x.com", token1)
        assert stale.status_code == 400
        assert stale.json() == {"detail": "Invalid or expired password reset link"}

        assert confirm_reset(client, "b@x.com", token2).status_code == 200
        assert app.state.identity_provider.verify_password("b@x.com", "new-password-1")

    def test_link_parameters_redeem_token(
        self, client: TestClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        """The emailed link carries exactly what the confirm step needs."""
        with caplog.at_level(logging.INFO):
            client.post("/v1/password-reset", json={"email": "b@x.com"})

        match = re.search(r"Link: (\S+)", caplog.text)
        assert match is not None
        link = match.group(1)
        assert link.startswith("https://learnset.example/reset-password?token=")

        email, token = parse_reset_link(link)
        assert confirm_reset(client, email, token).status_code == 200

    def test_token_is_single_use(self, client: TestClient, app: FastAPI) -> None:
        token = issue_token(client, app, "b@x.com")

        assert confirm_reset(client, "b@x.com", token).status_code == 200
        assert confirm_reset(client, "b@x.com", token, "another-password").status_code == 400

    def test_expired_link(self, client: TestClient, app: FastAPI, clock: FakeClock) -> None:
        token = issue_token(client, app, "b@x.com")
        clock.advance(RESET_TTL_MILLIS + 1)

        assert confirm_reset(client, "b@x.com", token).status_code == 400
        assert app.state.reset_store.get("b@x.com") is None

    def test_unknown_account_looks_like_bad_link(self, client: TestClient, app: FastAPI) -> None:
        token = issue_token(client, app, "ghost@x.com")

        response = confirm_reset(client, "ghost@x.com", token)

        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid or expired password reset link"}
        assert app.state.reset_store.get("ghost@x.com") is not None

    def test_configured_password_policy_applies(
        self, client: TestClient, app: FastAPI, test_settings: Settings
    ) -> None:
        test_settings.password_min_length = 6
        token = issue_token(client, app, "b@x.com")

        response = confirm_reset(client, "b@x.com", token, "abcdef")

        assert response.status_code == 200
        assert app.state.identity_provider.verify_password("b@x.com", "abcdef")

    def test_password_below_policy_rejected_with_field(
        self, client: TestClient, app: FastAPI
    ) -> None:
        token = issue_token(client, app, "b@x.com")

        response = confirm_reset(client, "b@x.com", token, "short")

        assert response.status_code == 422
        assert response.json()["field"] == "new_password"
        assert app.state.reset_store.get("b@x.com") is not None

    def test_malformed_token_returns_field_error(self, client: TestClient) -> None:
        response = confirm_reset(client, "b@x.com", "not-a-token")

        assert response.status_code == 422
        assert response.json()["field"] == "token"


class TestChatFlow:
    def test_chat_round_trip(self, client: TestClient) -> None:
        response = client.post("/v1/chat", json={"message": "What is a cell?"})

        assert response.status_code == 200
        assert response.json()["response_text"].startswith("You asked about: What is a cell?")

    def test_blank_message_rejected_by_domain(self, client: TestClient) -> None:
        response = client.post("/v1/chat", json={"message": "   "})

        assert response.status_code == 422
        assert response.json()["field"] == "message"


class TestApplication:
    """The production app starts with the in-memory backend by default."""

    def test_lifespan_wires_memory_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BACKEND", "memory")
        from src.config.settings import get_settings

        get_settings.cache_clear()
        try:
            with TestClient(main_app) as client:
                assert client.get("/health").json() == {"status": "healthy"}
                assert main_app.state.pool is None
                assert client.post("/v1/otp", json={"email": "a@x.com"}).status_code == 200
        finally:
            get_settings.cache_clear()

    def test_health_checks_database_when_pooled(self, monkeypatch: pytest.MonkeyPatch) -> None:
        pool = MagicMock()
        conn = pool.connection.return_value.__enter__.return_value
        monkeypatch.setattr(main_app.state, "pool", pool, raising=False)

        response = TestClient(main_app).get("/health")

        assert response.status_code == 200
        conn.execute.assert_called_once_with("SELECT 1")

    def test_health_reports_unreachable_database_as_503(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        pool = MagicMock()
        pool.connection.side_effect = psycopg.OperationalError("connection refused")
        monkeypatch.setattr(main_app.state, "pool", pool, raising=False)

        response = TestClient(main_app).get("/health")

        assert response.status_code == 503
        assert response.json() == {"detail": UNAVAILABLE_MESSAGE}
