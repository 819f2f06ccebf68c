"""
FastAPI dependencies for OAuth endpoints.

Provides dependency injection for provider validation, the OAuth client
and the per-provider strategy.
"""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, status

from authcode.core.config import ProviderConfig
from authcode.core.ports import OAuthClient
from authcode.core.strategy import OAuthStrategy
from authcode.infrastructure.oauth_client import HttpxOAuthClient
from authcode.oauth.config import (
    get_oauth_settings,
    get_provider_registry,
    OAuthSettings,
    SUPPORTED_PROVIDERS,
)


logger = logging.getLogger(__name__)


@lru_cache()
def get_oauth_client() -> OAuthClient:
    """Provide the shared (stateless) OAuth client."""
    return HttpxOAuthClient(timeout=get_oauth_settings().http_timeout)


async def validate_provider(
    provider: str,
    settings: Annotated[OAuthSettings, Depends(get_oauth_settings)],
) -> str:
    """
    Validate that the provider is supported and enabled.

    Args:
        provider: OAuth provider name from path

    Returns:
        Validated provider name

    Raises:
        HTTPException: If provider is invalid or not enabled
    """
    if provider not in SUPPORTED_PROVIDERS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown provider: {provider}. Supported: {SUPPORTED_PROVIDERS}",
        )

    if not settings.is_provider_enabled(provider):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Provider '{provider}' is not configured",
        )

    return provider


def get_registry() -> dict[str, ProviderConfig]:
    """
    Provide the provider registry dependency.

    The registry is a singleton; the indirection lets tests inject configs.
    """
    return get_provider_registry()


def get_strategy(
    provider: Annotated[str, Depends(validate_provider)],
    client: Annotated[OAuthClient, Depends(get_oauth_client)],
    registry: Annotated[dict[str, ProviderConfig], Depends(get_registry)],
) -> OAuthStrategy:
    """Provide the strategy for the requested provider."""
    config = registry.get(provider)
    if config is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"OAuth provider '{provider}' not available",
        )
    return OAuthStrategy(config, client)


# Type aliases for cleaner dependency injection
ValidProvider = Annotated[str, Depends(validate_provider)]
Settings = Annotated[OAuthSettings, Depends(get_oauth_settings)]
Strategy = Annotated[OAuthStrategy, Depends(get_strategy)]
