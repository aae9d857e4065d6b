"""認証 API のユニットテスト

Firebase Auth は get_token_verifier を差し替えてバイパスする。
"""

import pytest
from fastapi.testclient import TestClient

from social_api.config import AppConfig
from social_api.entrypoints.api.app import app
from social_api.entrypoints.api.deps import (
    AuthInfo,
    InvalidTokenError,
    get_app_config,
    get_token_verifier,
)

_AUTH_INFO = AuthInfo(uid="firebase-uid", email="alice@example.com", display_name="Alice")


def _verify(id_token: str) -> AuthInfo:
    if id_token != "good-token":
        raise InvalidTokenError("Token has expired")
    return _AUTH_INFO


@pytest.fixture
def auth_client(api_client):
    app.dependency_overrides[get_token_verifier] = lambda: _verify
    return api_client


@pytest.fixture
def unconfigured_client():
    """PROJECT_ID 未設定のクライアント"""
    app.dependency_overrides[get_app_config] = lambda: AppConfig(project_id="")

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


class TestAuthStatus:
    def test_configured(self, api_client):
        response = api_client.get("/auth/status")

        assert response.json()["configured"] is True

    def test_unconfigured(self, unconfigured_client):
        response = unconfigured_client.get("/auth/status")

        assert response.status_code == 200
        assert response.json()["configured"] is False
        assert "requires configuration" in response.json()["message"]


class TestValidateToken:
    def test_valid_token(self, auth_client):
        response = auth_client.post("/auth/validate-token", json={"idToken": "good-token"})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "user": {
                "userId": "firebase-uid",
                "email": "alice@example.com",
                "name": "Alice",
                "username": "alice@example.com",
            },
        }

    def test_invalid_token_returns_401(self, auth_client):
        response = auth_client.post("/auth/validate-token", json={"idToken": "bad"})

        assert response.status_code == 401
        assert response.json() == {
            "error": "Token validation failed",
            "details": "Token has expired",
        }

    def test_missing_token_returns_400(self, auth_client):
        response = auth_client.post("/auth/validate-token", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "ID token is required"}

    def test_unconfigured_returns_503(self, unconfigured_client):
        response = unconfigured_client.post(
            "/auth/validate-token", json={"idToken": "good-token"}
        )

        assert response.status_code == 503
        assert response.json()["error"] == "Authentication not configured"


class TestSyncUser:
    def _sync(self, client, **info):
        user_info = {"userId": "firebase-uid", "email": "alice@example.com"}
        user_info.update(info)
        return client.post("/auth/sync-user", json={"userInfo": user_info})

    def test_creates_new_user(self, api_client, repos):
        response = self._sync(api_client, name="Alice")

        assert response.status_code == 201
        assert response.json()["externalId"] == "firebase-uid"
        assert response.json()["name"] == "Alice"
        assert len(repos.users) == 1

    def test_existing_user_returns_200(self, api_client, repos):
        """2 回目の同期は既存ユーザーを返し、新たに作成しないこと"""
        first = self._sync(api_client, name="Alice")
        second = self._sync(api_client, name="Alice")

        assert second.status_code == 200
        assert second.json()["id"] == first.json()["id"]
        assert len(repos.users) == 1

    def test_email_taken_by_other_account_returns_409(self, api_client, repos, bob):
        repos.users.create(bob)

        response = self._sync(api_client, email="bob@example.com")

        assert response.status_code == 409

    def test_name_falls_back_to_email(self, api_client):
        response = self._sync(api_client)

        assert response.json()["name"] == "alice@example.com"

    def test_missing_email_returns_400(self, api_client):
        response = api_client.post(
            "/auth/sync-user", json={"userInfo": {"userId": "firebase-uid"}}
        )

        assert response.status_code == 400
        assert response.json() == {
            "error": "User info with userId and email is required"
        }


def test_logout(api_client):
    response = api_client.post("/auth/logout")

    assert response.json()["success"] is True
