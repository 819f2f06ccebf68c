"""
Built-in provider presets.

A preset holds the default endpoints and the capability descriptor for
one identity provider. Environment variables override the endpoints and
credentials at load time (see authcode.oauth.config).
"""

from dataclasses import dataclass, field

from authcode.core.config import ProfileSource, ProviderCapabilities


LOCAL_REALM = "/auth/realms/master/protocol/openid-connect"


@dataclass(frozen=True)
class ProviderPreset:
    """Default configuration for a known provider."""

    site: str = "http://localhost:8080"
    authorize_url: str = f"{LOCAL_REALM}/auth"
    token_url: str = f"{LOCAL_REALM}/token"
    userinfo_url: str | None = f"{LOCAL_REALM}/userinfo"
    logout_url: str | None = f"{LOCAL_REALM}/logout"
    token_method: str = "POST"
    capabilities: ProviderCapabilities = field(default_factory=ProviderCapabilities)


KEYCLOAK = ProviderPreset(
    capabilities=ProviderCapabilities(
        profile_source=ProfileSource.USERINFO_ENDPOINT,
        scope_delimiter=",",
        uid_field="id",
        default_scope="api read_user read_registry",
        refresh_expires_field="refresh_expires_in",
        entitlements_field="applications",
        userinfo_token_param=True,
        require_static_credentials=True,
    ),
)

# RingCentral returns the owner id with the token and needs no userinfo call.
# Credentials may be supplied per call, so they are not required at load time.
RING_CENTRAL = ProviderPreset(
    capabilities=ProviderCapabilities(
        profile_source=ProfileSource.TOKEN_RESPONSE,
        scope_delimiter=" ",
        uid_field="owner_id",
        default_scope=None,
        passthrough_params=("brand_id",),
        refresh_expires_field="refresh_token_expires_in",
        session_state_param="client_session_state",
        userinfo_token_param=True,
        require_static_credentials=False,
    ),
)


PRESETS: dict[str, ProviderPreset] = {
    "keycloak": KEYCLOAK,
    "ring_central": RING_CENTRAL,
}
