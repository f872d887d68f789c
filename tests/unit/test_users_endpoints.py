"""Unit tests for /api/users endpoints."""

import pytest

from conftest import make_user
from identity_broker.api.dependencies import get_identity_broker
from identity_broker.models.auth import RemoteUserSummary
from identity_broker.models.errors import AdminAuthError, NotFoundError
from identity_broker.models.result import Failure, Success

AUTH = {"Authorization": "Bearer abc.def.ghi"}


@pytest.fixture
def client(mock_lifespan, mock_broker):
    from fastapi.testclient import TestClient
    from identity_broker.main import app

    app.dependency_overrides[get_identity_broker] = lambda: mock_broker
    with TestClient(app) as tc:
        yield tc
    app.dependency_overrides.clear()


class TestListRemoteUsers:
    """Tests for GET /api/users."""

    def test_requires_bearer(self, client, mock_broker):
        response = client.get("/api/users")

        assert response.status_code in (401, 403)
        mock_broker.get_users.assert_not_awaited()

    def test_lists_camel_case_summaries(self, client, mock_broker):
        mock_broker.get_users.return_value = Success(
            [
                RemoteUserSummary(
                    id="kc-1",
                    username="a@x.com",
                    first_name="A",
                    last_name="B",
                    email="a@x.com",
                    enabled=True,
                )
            ]
        )

        response = client.get("/api/users", headers=AUTH)

        assert response.status_code == 200
        assert response.json() == [
            {
                "id": "kc-1",
                "username": "a@x.com",
                "firstName": "A",
                "lastName": "B",
                "email": "a@x.com",
                "enabled": True,
            }
        ]

    def test_admin_failure_is_400(self, client, mock_broker):
        mock_broker.get_users.return_value = Failure(
            AdminAuthError("Unable to authenticate with the identity provider.")
        )

        response = client.get("/api/users", headers=AUTH)

        assert response.status_code == 400
        assert response.json()["detail"] == "Unable to authenticate with the identity provider."


class TestLocalUsers:
    """Tests for the local mirror administration endpoints."""

    def test_list_local(self, client, mock_broker):
        mock_broker.list_local_users.return_value = Success([make_user()])

        response = client.get("/api/users/local", headers=AUTH)

        assert response.status_code == 200
        (data,) = response.json()
        assert data["providerId"] == "abc123"
        assert data["isEmailConfirmed"] is False

    def test_disable_user(self, client, mock_broker):
        mock_broker.set_user_enabled.return_value = Success(make_user(is_enabled=False))

        response = client.put(
            "/api/users/abc123/enabled", json={"enabled": False}, headers=AUTH
        )

        assert response.status_code == 200
        assert response.json()["isEnabled"] is False
        mock_broker.set_user_enabled.assert_awaited_once_with("abc123", False)

    def test_unknown_user(self, client, mock_broker):
        mock_broker.set_user_enabled.return_value = Failure(NotFoundError("User not found."))

        response = client.put(
            "/api/users/missing/enabled", json={"enabled": True}, headers=AUTH
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "User not found."

    def test_local_requires_bearer(self, client, mock_broker):
        response = client.get("/api/users/local")

        assert response.status_code in (401, 403)


class TestConfirmationTokenNotExposed:
    """Pending confirmation tokens never leave the service."""

    def test_local_listing_omits_token(self, client, mock_broker):
        mock_broker.list_local_users.return_value = Success(
            [make_user(confirmation_token="secret-tok")]
        )

        response = client.get("/api/users/local", headers={"Authorization": "Bearer anything"})

        assert response.status_code == 200
        assert "secret-tok" not in response.text
        assert "confirmationToken" not in response.json()[0]

    def test_enablement_response_omits_token(self, client, mock_broker):
        mock_broker.set_user_enabled.return_value = Success(
            make_user(confirmation_token="secret-tok", is_enabled=False)
        )

        response = client.put(
            "/api/users/abc123/enabled", json={"enabled": False}, headers=AUTH
        )

        assert response.status_code == 200
        assert "secret-tok" not in response.text

    def test_confirm_response_omits_token(self, client, mock_broker):
        mock_broker.confirm_user.return_value = Success(
            make_user(confirmation_token="secret-tok")
        )

        response = client.post("/api/auth/confirm", params={"token": "secret-tok"})

        assert response.status_code == 200
        assert "secret-tok" not in response.text
