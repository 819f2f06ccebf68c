"""
Port definitions (interfaces) for the core domain.

The strategy depends on this interface, not on the httpx implementation.
Every operation takes the ProviderConfig explicitly; implementations keep
no per-request state.
"""

from typing import Any, Mapping, Protocol

from authcode.core.config import ProviderConfig
from authcode.core.domain import LogoutResult, TokenSet


class OAuthClient(Protocol):
    """
    Port (interface) for talking to an OAuth2 provider.

    Implemented by infrastructure adapters (e.g., HttpxOAuthClient).
    Transport failures and unparseable answers raise OAuthClientError
    subclasses. A provider error on the token endpoint is NOT raised: it
    comes back as a TokenSet whose access_token is None.
    """

    def build_authorize_url(self, config: ProviderConfig, params: Mapping[str, Any]) -> str:
        """Build the provider authorize URL. Pure, no network."""
        ...

    async def exchange_code_for_token(
        self,
        config: ProviderConfig,
        code: str,
        redirect_uri: str,
        extra_params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TokenSet:
        """Exchange an authorization code for a token set."""
        ...

    async def refresh(
        self,
        config: ProviderConfig,
        refresh_token: str,
        headers: Mapping[str, str] | None = None,
    ) -> TokenSet:
        """Trade a refresh token for a new token set."""
        ...

    async def fetch_userinfo(self, config: ProviderConfig, token: TokenSet) -> dict[str, Any]:
        """Fetch the user profile with an access token."""
        ...

    async def logout(self, config: ProviderConfig, token_set: TokenSet) -> LogoutResult:
        """End the provider session for a token set."""
        ...
