"""
Provider configuration value objects.

A ProviderConfig is built once at startup and never mutated; per-call
overrides produce a new instance. ProviderCapabilities captures the few
ways providers differ so a single strategy can serve all of them.
"""

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import urljoin

from authcode.core.exceptions import ConfigurationError


TOKEN_METHODS = ("GET", "POST")


class ProfileSource(str, Enum):
    """Where the user's uid and profile come from after the token exchange."""

    USERINFO_ENDPOINT = "userinfo_endpoint"
    TOKEN_RESPONSE = "token_response"


@dataclass(frozen=True)
class ProviderCapabilities:
    """Behavioural differences between providers."""

    profile_source: ProfileSource = ProfileSource.USERINFO_ENDPOINT
    scope_delimiter: str = " "
    uid_field: str = "id"
    default_scope: str | None = None
    passthrough_params: tuple[str, ...] = ()
    refresh_expires_field: str | None = None
    entitlements_field: str | None = None
    session_state_param: str | None = None
    userinfo_token_param: bool = True
    require_static_credentials: bool = True

    @property
    def needs_userinfo_fetch(self) -> bool:
        return self.profile_source is ProfileSource.USERINFO_ENDPOINT


@dataclass(frozen=True)
class ProviderConfig:
    """
    Endpoint and client configuration for one identity provider.

    Endpoint URLs may be absolute or relative to ``site``.
    """

    name: str
    site: str
    authorize_url: str
    token_url: str
    userinfo_url: str | None = None
    logout_url: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    redirect_uri: str | None = None
    token_method: str = "POST"
    uid_field: str | None = None
    default_scope: str | None = None
    scope_delimiter: str | None = None
    capabilities: ProviderCapabilities = field(default_factory=ProviderCapabilities)

    def __post_init__(self):
        # Unset fields fall back to the provider defaults.
        if self.uid_field is None:
            object.__setattr__(self, "uid_field", self.capabilities.uid_field)
        if self.default_scope is None:
            object.__setattr__(self, "default_scope", self.capabilities.default_scope)
        if self.scope_delimiter is None:
            object.__setattr__(self, "scope_delimiter", self.capabilities.scope_delimiter)
        object.__setattr__(self, "token_method", self.token_method.upper())

    def endpoint_url(self, url: str) -> str:
        """Resolve an endpoint URL against the configured site."""
        if url.startswith(("http://", "https://")):
            return url
        return urljoin(self.site.rstrip("/") + "/", url.lstrip("/"))

    def with_overrides(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        site: str | None = None,
    ) -> "ProviderConfig":
        """
        Return a copy with per-call overrides applied.

        Used for multi-tenant setups where credentials are only known when
        the request arrives. None means "keep the configured value".
        """
        changes = {
            key: value
            for key, value in (
                ("client_id", client_id),
                ("client_secret", client_secret),
                ("site", site),
            )
            if value is not None
        }
        if not changes:
            return self
        return dataclasses.replace(self, **changes)

    def has_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def require_credentials(self) -> None:
        """Fail fast when the client credentials are not available."""
        if not self.client_id:
            raise ConfigurationError(f"client_id missing from {self.name} config")
        if not self.client_secret:
            raise ConfigurationError(f"client_secret missing from {self.name} config")

    def validate(self) -> None:
        """
        Validate configuration at load time.

        Providers that accept per-call credentials skip the credentials
        check here; it still runs before any token exchange.
        """
        if self.token_method not in TOKEN_METHODS:
            raise ConfigurationError(
                f"Invalid token method {self.token_method!r} for {self.name}. "
                f"Expected one of {TOKEN_METHODS}"
            )
        if not self.site:
            raise ConfigurationError(f"site missing from {self.name} config")
        if self.capabilities.needs_userinfo_fetch and not self.userinfo_url:
            raise ConfigurationError(f"userinfo_url missing from {self.name} config")
        if self.capabilities.require_static_credentials:
            self.require_credentials()
