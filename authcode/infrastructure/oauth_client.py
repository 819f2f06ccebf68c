"""
httpx implementation of the OAuthClient port.

Request encoding is delegated to authlib's RFC 6749 helpers; transport is a
short-lived httpx.AsyncClient per call, so the client itself holds nothing
between requests.
"""

import logging
from typing import Any, Mapping

import httpx
from authlib.common.urls import add_params_to_qs, add_params_to_uri, url_decode
from authlib.oauth2.rfc6749.parameters import prepare_grant_uri, prepare_token_request
from pydantic import ValidationError

from authcode.core.config import ProviderConfig
from authcode.core.domain import LogoutResult, TokenSet
from authcode.core.exceptions import (
    ConfigurationError,
    MalformedResponseError,
    OAuthNetworkError,
    OAuthProviderError,
    OAuthUnauthorizedError,
)


logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# Authorize-URL parameters that callers cannot override through extras.
_RESERVED_AUTHORIZE_PARAMS = {"uri", "client_id", "response_type", "redirect_uri", "scope", "state"}
_RESERVED_TOKEN_PARAMS = {"body", "grant_type", "redirect_uri", "client_id", "client_secret", "code"}


class HttpxOAuthClient:
    """
    OAuth2 authorization-code client for a configured provider.

    All operations take the ProviderConfig explicitly so one instance can
    serve every provider and every tenant.
    """

    def __init__(self, timeout: float = 10.0):
        self._timeout = timeout

    def build_authorize_url(self, config: ProviderConfig, params: Mapping[str, Any]) -> str:
        """
        Build the URL the user agent is redirected to.

        Args:
            config: Provider configuration
            params: scope, state, redirect_uri and provider-specific extras

        Returns:
            Authorize URL with the query string appended

        Raises:
            ConfigurationError: If credentials or the redirect URI are missing
        """
        config.require_credentials()
        redirect_uri = params.get("redirect_uri") or config.redirect_uri
        if not redirect_uri:
            raise ConfigurationError(f"redirect_uri missing from {config.name} config")

        extras = {
            key: value
            for key, value in params.items()
            if key not in _RESERVED_AUTHORIZE_PARAMS and value is not None
        }
        uri = prepare_grant_uri(
            config.endpoint_url(config.authorize_url),
            client_id=config.client_id,
            response_type="code",
            redirect_uri=redirect_uri,
            scope=params.get("scope"),
            state=params.get("state"),
            **extras,
        )
        # authlib drops empty values; an empty scope or state is still sent
        blanks = [(key, "") for key in ("scope", "state") if params.get(key) == ""]
        return add_params_to_uri(uri, blanks) if blanks else uri

    async def exchange_code_for_token(
        self,
        config: ProviderConfig,
        code: str,
        redirect_uri: str,
        extra_params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TokenSet:
        """
        Exchange an authorization code at the token endpoint.

        The response body is parsed whatever the status code: an OAuth
        error comes back as a TokenSet with no access_token.

        Raises:
            ConfigurationError: If client credentials are missing
            OAuthNetworkError: On transport failure
            MalformedResponseError: If the body is not a token object
        """
        config.require_credentials()
        params = {
            key: value
            for key, value in (extra_params or {}).items()
            if key not in _RESERVED_TOKEN_PARAMS
        }
        params.update(
            client_id=config.client_id,
            client_secret=config.client_secret,
            code=code,
        )
        body = prepare_token_request(
            "authorization_code",
            redirect_uri=redirect_uri or config.redirect_uri,
            **params,
        )
        blanks = [(key, value) for key, value in params.items() if value == ""]
        if blanks:
            body = add_params_to_qs(body, blanks)
        request_headers = {"Accept": "application/json", **dict(headers or {})}
        token_url = config.endpoint_url(config.token_url)

        logger.info(
            f"Exchanging authorization code with {config.name}",
            extra={"provider": config.name},
        )

        if config.token_method == "GET":
            response = await self._send(
                "GET",
                add_params_to_uri(token_url, url_decode(body)),
                headers=request_headers,
            )
        else:
            request_headers["Content-Type"] = FORM_CONTENT_TYPE
            response = await self._send(
                "POST", token_url, content=body, headers=request_headers
            )

        return self._token_set(response, config)

    async def refresh(
        self,
        config: ProviderConfig,
        refresh_token: str,
        headers: Mapping[str, str] | None = None,
    ) -> TokenSet:
        """
        Trade a refresh token for a new token set.

        Raises:
            ConfigurationError: If client credentials are missing
            OAuthNetworkError: On transport failure
            MalformedResponseError: If the body is not a token object
        """
        config.require_credentials()
        body = prepare_token_request(
            "refresh_token",
            client_id=config.client_id,
            client_secret=config.client_secret,
            refresh_token=refresh_token,
        )
        request_headers = {
            "Accept": "application/json",
            "Content-Type": FORM_CONTENT_TYPE,
            **dict(headers or {}),
        }

        logger.info(f"Refreshing token with {config.name}", extra={"provider": config.name})

        response = await self._send(
            "POST",
            config.endpoint_url(config.token_url),
            content=body,
            headers=request_headers,
        )
        return self._token_set(response, config)

    async def fetch_userinfo(self, config: ProviderConfig, token: TokenSet) -> dict[str, Any]:
        """
        Fetch the user profile.

        Raises:
            OAuthUnauthorizedError: If the provider answers 401
            OAuthProviderError: On any other status outside 200..399
            OAuthNetworkError: On transport failure
            MalformedResponseError: If the body is not a JSON object
        """
        if not config.userinfo_url:
            raise ConfigurationError(f"userinfo_url missing from {config.name} config")

        params = None
        if config.capabilities.userinfo_token_param:
            params = {"access_token": token.access_token}

        response = await self._send(
            "GET",
            config.endpoint_url(config.userinfo_url),
            params=params,
            headers={
                "Authorization": f"Bearer {token.access_token}",
                "Accept": "application/json",
            },
        )

        if response.status_code == 401:
            logger.warning(
                f"Userinfo request rejected by {config.name}",
                extra={"provider": config.name},
            )
            raise OAuthUnauthorizedError("unauthorized", status_code=401)
        if not 200 <= response.status_code < 400:
            logger.error(
                f"Userinfo request failed: {response.status_code} {response.text}",
                extra={"provider": config.name},
            )
            raise OAuthProviderError(
                f"Userinfo request failed with status {response.status_code}",
                status_code=response.status_code,
            )

        return self._decode_body(response, config)

    async def logout(self, config: ProviderConfig, token_set: TokenSet) -> LogoutResult:
        """
        End the provider session.

        Raises:
            ConfigurationError: If no logout_url is configured
            OAuthProviderError: If the provider answers with status >= 400
            OAuthNetworkError: On transport failure
        """
        if not config.logout_url:
            raise ConfigurationError(f"logout_url missing from {config.name} config")

        data = {
            "client_id": config.client_id,
            "client_secret": config.client_secret,
            "refresh_token": token_set.refresh_token,
        }
        headers = {"Content-Type": FORM_CONTENT_TYPE}
        if token_set.access_token:
            headers["Authorization"] = f"Bearer {token_set.access_token}"

        response = await self._send(
            "POST",
            config.endpoint_url(config.logout_url),
            data={key: value for key, value in data.items() if value is not None},
            headers=headers,
        )

        if response.status_code >= 400:
            logger.error(
                f"Logout failed: {response.status_code} {response.text}",
                extra={"provider": config.name},
            )
            raise OAuthProviderError(
                f"Logout failed with status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body: Any = response.json()
        except ValueError:
            body = response.text or None
        return LogoutResult(status_code=response.status_code, body=body)

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Issue one request, mapping transport failures to OAuthNetworkError."""
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                return await client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"Network error calling {url}: {e}")
            raise OAuthNetworkError(str(e) or e.__class__.__name__) from e

    def _token_set(self, response: httpx.Response, config: ProviderConfig) -> TokenSet:
        """Parse a token endpoint body, rejecting fields of the wrong type."""
        body = self._decode_body(response, config)
        try:
            return TokenSet.from_response(body)
        except (ValueError, TypeError, ValidationError) as e:
            raise MalformedResponseError(
                f"Invalid token response from {config.name}: {e}",
                status_code=response.status_code,
            ) from e

    @staticmethod
    def _decode_body(response: httpx.Response, config: ProviderConfig) -> dict[str, Any]:
        """Decode a JSON (or form-encoded) object body."""
        try:
            data = response.json()
        except ValueError as e:
            content_type = response.headers.get("content-type", "")
            if FORM_CONTENT_TYPE not in content_type and "text/plain" not in content_type:
                raise MalformedResponseError(
                    f"Invalid response from {config.name}: {response.status_code}",
                    status_code=response.status_code,
                ) from e
            try:
                data = dict(url_decode(response.text))
            except ValueError as decode_error:
                raise MalformedResponseError(
                    f"Invalid response from {config.name}: {decode_error}",
                    status_code=response.status_code,
                ) from decode_error

        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"Expected a JSON object from {config.name}",
                status_code=response.status_code,
            )
        return data
