"""
OAuth2 configuration and provider registry.

Each provider (Keycloak, RingCentral) is configured independently from
environment variables on top of its built-in preset. The registry is built
once and shared read-only across requests.
"""

import os
import logging
from dataclasses import dataclass, field
from functools import lru_cache

from authcode.core.config import ProviderConfig
from authcode.core.exceptions import ConfigurationError
from authcode.oauth.providers import PRESETS, ProviderPreset


logger = logging.getLogger(__name__)


# List of supported providers (for validation)
SUPPORTED_PROVIDERS = list(PRESETS)


def _env_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class OAuthSettings:
    """
    Application-level OAuth settings.

    Loaded from environment variables. Provider credentials are read
    separately by load_provider_config().
    """

    base_url: str
    providers: list[str] = field(default_factory=lambda: ["keycloak"])
    http_timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "OAuthSettings":
        """Load settings from environment variables."""
        return cls(
            base_url=os.getenv("BASE_URL", ""),
            providers=_env_list(os.getenv("AUTH_PROVIDERS"), ["keycloak"]),
            http_timeout=float(os.getenv("OAUTH_HTTP_TIMEOUT", "10")),
        )

    def get_callback_url(self, provider: str) -> str:
        """Generate callback URL for a provider."""
        return f"{self.base_url}/auth/{provider}/callback"

    def is_provider_enabled(self, provider: str) -> bool:
        """Check if a provider is switched on for this deployment."""
        return provider in self.providers


@lru_cache()
def get_oauth_settings() -> OAuthSettings:
    """Get OAuth settings singleton."""
    return OAuthSettings.from_env()


def load_provider_config(
    name: str, preset: ProviderPreset | None = None, redirect_uri: str | None = None
) -> ProviderConfig:
    """
    Build a provider configuration from its preset and the environment.

    Reads ``<NAME>_CLIENT_ID``, ``<NAME>_CLIENT_SECRET``, ``<NAME>_SITE``,
    ``<NAME>_AUTHORIZE_URL``, ``<NAME>_TOKEN_URL``, ``<NAME>_USERINFO_URL``,
    ``<NAME>_LOGOUT_URL``, ``<NAME>_REDIRECT_URI``, ``<NAME>_DEFAULT_SCOPE``,
    ``<NAME>_UID_FIELD`` and ``<NAME>_TOKEN_METHOD``.

    Args:
        name: Provider name (keycloak, ring_central)
        preset: Preset to start from (looked up by name if not provided)
        redirect_uri: Fallback redirect URI when none is set in the environment

    Returns:
        Validated ProviderConfig

    Raises:
        ConfigurationError: If the provider is unknown or misconfigured
    """
    if preset is None:
        if name not in PRESETS:
            raise ConfigurationError(
                f"Unknown provider: {name}. Supported: {SUPPORTED_PROVIDERS}"
            )
        preset = PRESETS[name]

    prefix = name.upper()

    def env(key: str, default: str | None = None) -> str | None:
        return os.getenv(f"{prefix}_{key}") or default

    config = ProviderConfig(
        name=name,
        site=env("SITE", preset.site),
        authorize_url=env("AUTHORIZE_URL", preset.authorize_url),
        token_url=env("TOKEN_URL", preset.token_url),
        userinfo_url=env("USERINFO_URL", preset.userinfo_url),
        logout_url=env("LOGOUT_URL", preset.logout_url),
        client_id=env("CLIENT_ID"),
        client_secret=env("CLIENT_SECRET"),
        redirect_uri=env("REDIRECT_URI", redirect_uri),
        token_method=env("TOKEN_METHOD", preset.token_method),
        uid_field=env("UID_FIELD"),
        default_scope=env("DEFAULT_SCOPE"),
        capabilities=preset.capabilities,
    )
    config.validate()
    return config


def create_provider_registry(settings: OAuthSettings | None = None) -> dict[str, ProviderConfig]:
    """
    Create the provider registry.

    Every enabled provider must load cleanly: a configuration error here is
    fatal and stops the application before it serves requests.

    Args:
        settings: OAuth settings (uses default if not provided)

    Returns:
        Mapping of provider name to ProviderConfig
    """
    if settings is None:
        settings = get_oauth_settings()

    registry: dict[str, ProviderConfig] = {}
    for name in settings.providers:
        registry[name] = load_provider_config(
            name, redirect_uri=settings.get_callback_url(name)
        )
        if registry[name].has_credentials():
            logger.info(f"Registered {name} OAuth provider")
        else:
            logger.warning(
                f"{name} OAuth provider registered without static credentials "
                "(expects per-call credentials)"
            )

    return registry


# Global provider registry singleton
_provider_registry: dict[str, ProviderConfig] | None = None


def get_provider_registry() -> dict[str, ProviderConfig]:
    """
    Get the provider registry singleton.

    Creates and validates the registry on first access.
    """
    global _provider_registry
    if _provider_registry is None:
        _provider_registry = create_provider_registry()
    return _provider_registry


def reset_provider_registry() -> None:
    """
    Reset the provider registry.

    Useful for testing with different configurations.
    """
    global _provider_registry
    _provider_registry = None
