"""
Shared test configuration and fixtures.
"""

import pytest

from authcode.core.config import ProviderConfig
from authcode.oauth.providers import KEYCLOAK, RING_CENTRAL


SITE = "https://idp.example.com"
CALLBACK_URL = "http://testserver/auth/keycloak/callback"


@pytest.fixture
def keycloak_config():
    """Keycloak provider with static credentials."""
    return ProviderConfig(
        name="keycloak",
        site=SITE,
        authorize_url="/protocol/openid-connect/auth",
        token_url="/protocol/openid-connect/token",
        userinfo_url="/protocol/openid-connect/userinfo",
        logout_url="/protocol/openid-connect/logout",
        client_id="kc-client",
        client_secret="kc-secret",
        redirect_uri=CALLBACK_URL,
        capabilities=KEYCLOAK.capabilities,
    )


@pytest.fixture
def ring_central_config():
    """RingCentral provider with static credentials."""
    return ProviderConfig(
        name="ring_central",
        site=SITE,
        authorize_url="/restapi/oauth/authorize",
        token_url="/restapi/oauth/token",
        logout_url="/restapi/oauth/revoke",
        client_id="rc-client",
        client_secret="rc-secret",
        redirect_uri="http://testserver/auth/ring_central/callback",
        capabilities=RING_CENTRAL.capabilities,
    )


@pytest.fixture
def sample_token_response():
    """Typical token endpoint response."""
    return {
        "access_token": "tok1",
        "refresh_token": "ref1",
        "token_type": "bearer",
        "scope": "profile email",
    }


@pytest.fixture
def sample_userinfo():
    """Keycloak userinfo payload."""
    return {
        "id": 42,
        "sub": "f1c2",
        "name": "Ada Lovelace",
        "given_name": "Ada",
        "family_name": "Lovelace",
        "preferred_username": "ada",
        "email": "ada@example.com",
        "avatar_url": "https://example.com/ada.png",
        "applications": "billing,reports",
    }
