"""
Tests for OAuth router endpoints.
"""

import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

# Set environment variables before importing app
with patch.dict(
    os.environ,
    {
        "BASE_URL": "http://testserver",
        "AUTH_PROVIDERS": "keycloak,ring_central",
    },
):
    from authcode.main import app
    from authcode.core.domain import LogoutResult, TokenSet
    from authcode.core.exceptions import ConfigurationError, OAuthNetworkError
    from authcode.infrastructure.oauth_client import HttpxOAuthClient
    from authcode.oauth.config import OAuthSettings, get_oauth_settings
    from authcode.oauth.dependencies import get_oauth_client, get_registry


# ============================================================================
# Test Fixtures
# ============================================================================


@pytest.fixture
def settings():
    """OAuth settings with both providers enabled."""
    return OAuthSettings(
        base_url="http://testserver", providers=["keycloak", "ring_central"]
    )


@pytest.fixture
def mock_client():
    """OAuth client with real URL building and mocked network calls."""
    client = MagicMock(wraps=HttpxOAuthClient())
    client.exchange_code_for_token = AsyncMock()
    client.refresh = AsyncMock()
    client.fetch_userinfo = AsyncMock()
    client.logout = AsyncMock()
    return client


@pytest.fixture
def test_client(settings, mock_client, keycloak_config, ring_central_config):
    """Test client with injected configuration."""
    app.dependency_overrides[get_oauth_settings] = lambda: settings
    app.dependency_overrides[get_oauth_client] = lambda: mock_client
    app.dependency_overrides[get_registry] = lambda: {
        "keycloak": keycloak_config,
        "ring_central": ring_central_config,
    }

    client = TestClient(app)
    yield client

    app.dependency_overrides.pop(get_oauth_settings, None)
    app.dependency_overrides.pop(get_oauth_client, None)
    app.dependency_overrides.pop(get_registry, None)


# ============================================================================
# GET /auth/{provider} Tests
# ============================================================================


class TestRequestPhaseEndpoint:
    """Tests for the GET /auth/{provider} endpoint."""

    def test_redirects_to_provider(self, test_client):
        """Test the request phase issues a 302 to the authorize URL."""
        response = test_client.get(
            "/auth/keycloak?scope=profile&state=xyz", follow_redirects=False
        )

        assert response.status_code == 302
        location = response.headers["location"]
        assert location.startswith("https://idp.example.com/protocol/openid-connect/auth?")
        assert "response_type=code" in location
        assert "scope=profile" in location
        assert "state=xyz" in location
        assert "redirect_uri=http%3A%2F%2Ftestserver%2Fauth%2Fkeycloak%2Fcallback" in location

    def test_default_scope(self, test_client):
        response = test_client.get("/auth/keycloak", follow_redirects=False)

        assert response.status_code == 302
        assert "scope=api+read_user+read_registry" in response.headers["location"]

    def test_unknown_provider_returns_404(self, test_client):
        response = test_client.get("/auth/unknown", follow_redirects=False)

        assert response.status_code == 404
        assert "Unknown provider" in response.json()["detail"]

    def test_disabled_provider_returns_503(self, test_client, settings):
        settings.providers = ["keycloak"]

        response = test_client.get("/auth/ring_central", follow_redirects=False)

        assert response.status_code == 503

    def test_configuration_error_returns_500(self, test_client, mock_client):
        mock_client.build_authorize_url = MagicMock(
            side_effect=ConfigurationError("client_id missing")
        )

        response = test_client.get("/auth/keycloak", follow_redirects=False)

        assert response.status_code == 500
        assert response.json()["status"] == "error"


# ============================================================================
# GET /auth/{provider}/callback Tests
# ============================================================================


class TestCallbackEndpoint:
    """Tests for the GET /auth/{provider}/callback endpoint."""

    def test_callback_success(self, test_client, mock_client, sample_userinfo):
        mock_client.exchange_code_for_token.return_value = TokenSet.from_response(
            {"access_token": "tok1", "refresh_token": "ref1", "scope": "api"}
        )
        mock_client.fetch_userinfo.return_value = sample_userinfo

        response = test_client.get("/auth/keycloak/callback?code=abc123&state=xyz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "success"
        assert data["auth"]["uid"] == "42"
        assert data["auth"]["provider"] == "keycloak"
        assert data["auth"]["credentials"]["token"] == "tok1"
        assert data["auth"]["info"]["email"] == "ada@example.com"

        _, code, redirect_uri = mock_client.exchange_code_for_token.call_args.args
        assert code == "abc123"
        assert redirect_uri == "http://testserver/auth/keycloak/callback"

    def test_callback_provider_denied(self, test_client, mock_client):
        response = test_client.get(
            "/auth/keycloak/callback?error=access_denied&error_description=User+declined"
        )

        assert response.status_code == 401
        assert response.json() == {
            "status": "error",
            "errors": [{"kind": "access_denied", "message": "User declined"}],
        }
        mock_client.exchange_code_for_token.assert_not_called()

    def test_callback_missing_code(self, test_client, mock_client):
        response = test_client.get("/auth/keycloak/callback")

        assert response.status_code == 401
        assert response.json()["errors"][0]["kind"] == "missing_code"
        mock_client.exchange_code_for_token.assert_not_called()

    def test_callback_network_error(self, test_client, mock_client):
        mock_client.exchange_code_for_token.side_effect = OAuthNetworkError("timed out")

        response = test_client.get("/auth/ring_central/callback?code=abc")

        assert response.status_code == 401
        assert response.json()["errors"] == [{"kind": "OAuth2", "message": "timed out"}]


# ============================================================================
# POST /auth/{provider}/refresh and /logout Tests
# ============================================================================


class TestCredentialEndpoints:
    """Tests for refresh and logout endpoints."""

    def test_refresh(self, test_client, mock_client):
        mock_client.refresh.return_value = TokenSet.from_response(
            {"access_token": "new", "refresh_token": "ref2", "scope": "a b"}
        )

        response = test_client.post(
            "/auth/ring_central/refresh",
            json={"token": "old", "refresh_token": "ref1"},
        )

        assert response.status_code == 200
        credentials = response.json()["credentials"]
        assert credentials["token"] == "new"
        assert credentials["scopes"] == ["a", "b"]

    def test_refresh_network_error_returns_502(self, test_client, mock_client):
        mock_client.refresh.side_effect = OAuthNetworkError("connection refused")

        response = test_client.post(
            "/auth/keycloak/refresh",
            json={"token": "old", "refresh_token": "ref1"},
        )

        assert response.status_code == 502
        assert response.json() == {
            "status": "error",
            "kind": "network",
            "message": "connection refused",
        }

    def test_logout(self, test_client, mock_client):
        mock_client.logout.return_value = LogoutResult(status_code=204)

        response = test_client.post(
            "/auth/keycloak/logout",
            json={"token": "tok", "refresh_token": "ref"},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "success"
        assert response.json()["provider_status"] == 204
