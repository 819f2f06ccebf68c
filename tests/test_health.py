"""
Tests for health check endpoints and application lifecycle.
"""

import os
from datetime import datetime
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from authcode.core.exceptions import ConfigurationError
from authcode.main import app
from authcode.oauth.config import OAuthSettings, reset_provider_registry

client = TestClient(app)

SETTINGS = OAuthSettings(base_url="http://testserver", providers=["keycloak"])


class TestHealthEndpoints:
    """Test health check endpoints."""

    def test_root_endpoint(self):
        """Test the root endpoint returns healthy status."""
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "authcode"
        assert "timestamp" in data

        # Validate timestamp format
        datetime.fromisoformat(data["timestamp"])

    def test_health_endpoint(self):
        """Test the /health endpoint returns healthy status."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestApplicationLifecycle:
    """Test application lifecycle events."""

    def setup_method(self):
        reset_provider_registry()

    def teardown_method(self):
        reset_provider_registry()

    def test_startup_loads_registry(self):
        """Test startup succeeds with a valid provider configuration."""
        env = {
            "BASE_URL": "http://testserver",
            "KEYCLOAK_CLIENT_ID": "kc-id",
            "KEYCLOAK_CLIENT_SECRET": "kc-secret",
        }
        with patch.dict(os.environ, env, clear=True):
            with patch("authcode.oauth.config.get_oauth_settings", return_value=SETTINGS):
                with TestClient(app) as test_client:
                    response = test_client.get("/health")
                    assert response.status_code == 200

    def test_startup_fails_on_missing_credentials(self):
        """Test configuration errors are fatal at startup."""
        with patch.dict(os.environ, {"BASE_URL": "http://testserver"}, clear=True):
            with patch("authcode.oauth.config.get_oauth_settings", return_value=SETTINGS):
                with pytest.raises(ConfigurationError):
                    with TestClient(app):
                        pass
