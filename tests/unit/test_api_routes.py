"""
Unit tests for the verification API routes.

Tests endpoint responses with mocked services and with the real
service over the in-memory store.
"""

import re
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.adapters.repository.memory import InMemoryVerificationRepository
from src.api.dependencies import get_verification_service
from src.api.errors import register_exception_handlers
from src.api.main import create_app
from src.api.routes import router
from src.config.settings import Settings, get_settings
from src.domain.exceptions import (
    InvalidEmailDomain,
    InvalidOrExpiredCode,
    PersistenceFailure,
)
from src.domain.ports import DeploymentMode
from src.domain.verification import IssueResult, VerificationService


def settings_for(mode: DeploymentMode) -> Settings:
    return Settings(environment=mode, _env_file=None)


@pytest.fixture
def app(sender) -> FastAPI:
    """Create test FastAPI application over the in-memory store."""
    test_app = FastAPI()
    register_exception_handlers(test_app)
    test_app.include_router(router)

    test_app.state.repository = InMemoryVerificationRepository()
    test_app.state.email_sender = sender
    test_app.dependency_overrides[get_settings] = lambda: settings_for(DeploymentMode.DEVELOPMENT)

    return test_app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


def use_mock_service(app: FastAPI, service: MagicMock) -> None:
    app.dependency_overrides[get_verification_service] = lambda: service


class TestSendEmailVerification:
    """Tests for POST /send-email-verification."""

    def test_success_in_development_returns_code(self, client: TestClient, sender) -> None:
        response = client.post(
            "/send-email-verification",
            json={"email": "student@uga.edu", "university": "University of Georgia"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Verification code sent successfully"
        assert re.match(r"^\d{6}$", body["code"])
        assert sender.sent == [("student@uga.edu", body["code"], "University of Georgia")]

    def test_success_in_production_omits_code(self, app: FastAPI, client: TestClient) -> None:
        app.dependency_overrides[get_settings] = lambda: settings_for(DeploymentMode.PRODUCTION)

        response = client.post(
            "/send-email-verification",
            json={"email": "student@uga.edu", "university": "UGA"},
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Verification code sent successfully"}

    def test_non_edu_email_returns_400(self, client: TestClient, sender) -> None:
        response = client.post(
            "/send-email-verification",
            json={"email": "student@gmail.com", "university": "UGA"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Valid .edu email required"}
        assert sender.sent == []

    @pytest.mark.parametrize(
        "payload",
        [
            {"university": "UGA"},
            {"email": "", "university": "UGA"},
            {"email": "   ", "university": "UGA"},
            {"email": 12345, "university": "UGA"},
            {"email": "student@uga.edu", "university": "UGA", "role": "admin"},
        ],
    )
    def test_malformed_body_returns_400(self, client: TestClient, payload: dict) -> None:
        response = client.post("/send-email-verification", json=payload)

        assert response.status_code == 400
        assert response.json() == {"error": "Valid .edu email required"}

    def test_invalid_json_returns_400(self, client: TestClient) -> None:
        response = client.post(
            "/send-email-verification",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400

    def test_delivery_failure_still_succeeds(self, app: FastAPI, client: TestClient) -> None:
        failing = MagicMock()
        failing.send_verification_code.side_effect = RuntimeError("email API down")
        app.state.email_sender = failing

        response = client.post(
            "/send-email-verification",
            json={"email": "student@uga.edu", "university": "UGA"},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Verification code sent successfully"
        failing.send_verification_code.assert_called_once()

    def test_persistence_failure_in_development_includes_details(self, app: FastAPI) -> None:
        service = MagicMock(spec=VerificationService)
        service.issue.side_effect = PersistenceFailure("OperationalError: connection refused")
        use_mock_service(app, service)

        response = TestClient(app).post(
            "/send-email-verification",
            json={"email": "student@uga.edu", "university": "UGA"},
        )

        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to store verification code",
            "details": "OperationalError: connection refused",
        }

    def test_persistence_failure_in_production_is_generic(self, app: FastAPI) -> None:
        service = MagicMock(spec=VerificationService)
        service.issue.side_effect = PersistenceFailure("OperationalError: connection refused")
        use_mock_service(app, service)
        app.dependency_overrides[get_settings] = lambda: settings_for(DeploymentMode.PRODUCTION)

        response = TestClient(app).post(
            "/send-email-verification",
            json={"email": "student@uga.edu", "university": "UGA"},
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to store verification code"}

    def test_passes_fields_to_service(self, app: FastAPI) -> None:
        service = MagicMock(spec=VerificationService)
        service.issue.return_value = IssueResult(
            email="student@uga.edu", expires_at=MagicMock(), dev_code=None
        )
        use_mock_service(app, service)

        response = TestClient(app).post(
            "/send-email-verification",
            json={"email": "student@uga.edu", "university": "UGA"},
        )

        assert response.status_code == 200
        args = service.issue.call_args
        assert args[0] == ("student@uga.edu", "UGA")
        assert callable(args[1]["schedule"])

    def test_domain_rejection_from_service_returns_400(self, app: FastAPI) -> None:
        service = MagicMock(spec=VerificationService)
        service.issue.side_effect = InvalidEmailDomain("student@gmail.com")
        use_mock_service(app, service)

        response = TestClient(app).post(
            "/send-email-verification",
            json={"email": "student@gmail.com", "university": "UGA"},
        )

        assert response.status_code == 400


class TestVerifyEmailCode:
    """Tests for POST /verify-email-code."""

    def test_round_trip_then_reuse(self, client: TestClient) -> None:
        issued = client.post(
            "/send-email-verification",
            json={"email": "student@uga.edu", "university": "UGA"},
        ).json()

        first = client.post(
            "/verify-email-code", json={"email": "student@uga.edu", "code": issued["code"]}
        )
        second = client.post(
            "/verify-email-code", json={"email": "student@uga.edu", "code": issued["code"]}
        )

        assert first.status_code == 200
        assert first.json() == {"message": "Email verified successfully"}
        assert second.status_code == 400
        assert second.json() == {"error": "Invalid or expired verification code"}

    def test_never_issued_email_returns_400(self, client: TestClient) -> None:
        response = client.post(
            "/verify-email-code", json={"email": "student@gmail.com", "code": "482913"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid or expired verification code"}

    @pytest.mark.parametrize(
        "payload",
        [
            {"email": "student@uga.edu"},
            {"code": "482913"},
            {"email": "", "code": "482913"},
            {"email": "student@uga.edu", "code": ""},
            {"email": "   ", "code": "482913"},
        ],
    )
    def test_missing_fields_returns_400(self, client: TestClient, payload: dict) -> None:
        response = client.post("/verify-email-code", json=payload)

        assert response.status_code == 400
        assert response.json() == {"error": "Email and verification code required"}

    def test_invalid_code_from_service(self, app: FastAPI) -> None:
        service = MagicMock(spec=VerificationService)
        service.validate.side_effect = InvalidOrExpiredCode()
        use_mock_service(app, service)

        response = TestClient(app).post(
            "/verify-email-code", json={"email": "student@uga.edu", "code": "000000"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid or expired verification code"}
        service.validate.assert_called_once_with("student@uga.edu", "000000")

    def test_persistence_failure_returns_500(self, app: FastAPI) -> None:
        service = MagicMock(spec=VerificationService)
        service.validate.side_effect = PersistenceFailure("OperationalError: timeout")
        use_mock_service(app, service)

        response = TestClient(app).post(
            "/verify-email-code", json={"email": "student@uga.edu", "code": "482913"}
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to verify code"}


class TestPreflight:
    @pytest.mark.parametrize("path", ["/send-email-verification", "/verify-email-code"])
    def test_options_returns_empty_200_with_cors_headers(
        self, client: TestClient, path: str
    ) -> None:
        response = client.options(path)

        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == "*"
        assert "content-type" in response.headers["access-control-allow-headers"]


class TestApplication:
    """Tests against the full application without running lifespan."""

    def test_missing_data_store_is_configuration_error(self, caplog) -> None:
        client = TestClient(create_app())

        response = client.post(
            "/verify-email-code", json={"email": "student@uga.edu", "code": "482913"}
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Server configuration error"}
        assert "Configuration error" in caplog.text

    @pytest.mark.parametrize("path", ["/send-email-verification", "/verify-email-code"])
    def test_browser_preflight_is_allowed(self, path: str) -> None:
        client = TestClient(create_app())

        response = client.options(
            path,
            headers={
                "Origin": "https://peachlease.example",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type, x-requested-with",
            },
        )

        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == "*"
        assert "content-type" in response.headers["access-control-allow-headers"]

    def test_unexpected_error_carries_cors_headers(self) -> None:
        application = create_app()
        application.state.repository = MagicMock()
        application.state.repository.validate_and_consume.side_effect = RuntimeError("boom")
        client = TestClient(application, raise_server_exceptions=False)

        response = client.post(
            "/verify-email-code",
            json={"email": "student@uga.edu", "code": "482913"},
            headers={"Origin": "https://peachlease.example"},
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert response.headers["access-control-allow-origin"] == "*"

    def test_health_with_memory_store(self) -> None:
        application = create_app()
        application.state.repository = InMemoryVerificationRepository()

        response = TestClient(application).get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
