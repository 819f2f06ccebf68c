"""
Authorization-code strategy.

Drives the two protocol phases for one provider:

- request phase: build the authorize URL and redirect (no network)
- callback phase: exchange the code, optionally fetch userinfo, normalize

Expected provider and user failures in the callback come back as
AuthFailure values; only ConfigurationError escapes it. Refresh and logout
raise client errors to the caller.
"""

import logging
from typing import Any, Mapping

from authcode.core import normalizer
from authcode.core.config import ProviderConfig
from authcode.core.domain import (
    AuthContext,
    AuthError,
    AuthFailure,
    AuthResult,
    Credentials,
    LogoutResult,
    Phase,
    RedirectDirective,
    TokenSet,
)
from authcode.core.exceptions import OAuthClientError, OAuthProviderError, OAuthUnauthorizedError
from authcode.core.ports import OAuthClient


logger = logging.getLogger(__name__)


class OAuthStrategy:
    """
    Generic authorization-code strategy parameterized by a ProviderConfig.
    """

    def __init__(self, config: ProviderConfig, client: OAuthClient):
        self.config = config
        self.client = client

    @property
    def provider(self) -> str:
        return self.config.name

    def _resolve_config(self, overrides: Mapping[str, Any] | None) -> ProviderConfig:
        if not overrides:
            return self.config
        return self.config.with_overrides(
            client_id=overrides.get("client_id"),
            client_secret=overrides.get("client_secret"),
            site=overrides.get("site"),
        )

    def request_phase(
        self,
        params: Mapping[str, Any],
        callback_url: str,
        overrides: Mapping[str, Any] | None = None,
        context: AuthContext | None = None,
    ) -> RedirectDirective:
        """
        Build the redirect to the provider's authorization page.

        To customize the requested scope, pass ``scope`` in params; it falls
        back to the configured default scope. A ``state`` param is passed
        through untouched and returned by the provider on callback.

        Args:
            params: Inbound query parameters
            callback_url: Absolute URL of this provider's callback route
            overrides: Optional client_id/client_secret/site for this call
            context: Per-request context, moved to REQUEST_ISSUED

        Returns:
            302 redirect directive
        """
        config = self._resolve_config(overrides)

        scope = params.get("scope")
        authorize_params: dict[str, Any] = {
            "redirect_uri": callback_url,
            "scope": config.default_scope if scope is None else scope,
        }
        if params.get("state") is not None:
            authorize_params["state"] = params["state"]
        for name in config.capabilities.passthrough_params:
            if params.get(name) is not None:
                authorize_params[name] = params[name]

        location = self.client.build_authorize_url(config, authorize_params)

        if context is not None:
            context.phase = Phase.REQUEST_ISSUED

        logger.info(
            f"Redirecting to {self.provider} for authorization",
            extra={"provider": self.provider, "phase": Phase.REQUEST_ISSUED.value},
        )
        return RedirectDirective(location=location)

    async def callback_phase(
        self,
        params: Mapping[str, Any],
        callback_url: str,
        overrides: Mapping[str, Any] | None = None,
        context: AuthContext | None = None,
    ) -> AuthResult | AuthFailure:
        """
        Handle the provider redirect back to the callback route.

        Exactly one of AuthResult or AuthFailure is returned. The context's
        raw token and userinfo are cleared before returning.
        """
        context = context if context is not None else AuthContext()
        context.phase = Phase.CALLBACK_PENDING
        try:
            outcome = await self._run_callback(params, callback_url, overrides, context)
            context.outcome = outcome
            return outcome
        finally:
            self.cleanup(context)

    async def _run_callback(
        self,
        params: Mapping[str, Any],
        callback_url: str,
        overrides: Mapping[str, Any] | None,
        context: AuthContext,
    ) -> AuthResult | AuthFailure:
        if params.get("error"):
            return self._failure(
                params["error"], params.get("error_description") or params["error"]
            )

        code = params.get("code")
        if not code:
            return self._failure("missing_code", "No code received")

        config = self._resolve_config(overrides)
        extra_params: dict[str, Any] = {}
        if config.capabilities.session_state_param and params.get("state") is not None:
            extra_params[config.capabilities.session_state_param] = params["state"]

        try:
            token = await self.client.exchange_code_for_token(
                config, code, callback_url, extra_params=extra_params
            )
        except OAuthClientError as e:
            return self._failure("OAuth2", e.reason)

        if token.is_error:
            if token.error:
                return self._failure(token.error, token.error_description)
            return self._failure("OAuth2", "No access token received")

        context.token = token

        if config.capabilities.needs_userinfo_fetch:
            try:
                context.user = await self.client.fetch_userinfo(config, token)
            except OAuthUnauthorizedError:
                return self._failure("token", "unauthorized")
            except OAuthClientError as e:
                return self._failure("OAuth2", e.reason)

        return self._build_result(config, token, context.user)

    def _build_result(
        self, config: ProviderConfig, token: TokenSet, user: dict[str, Any] | None
    ) -> AuthResult:
        result = AuthResult(
            provider=self.provider,
            uid=normalizer.uid(config.uid_field, token, user),
            credentials=normalizer.to_credentials(
                token, user, config.capabilities, scope_delimiter=config.scope_delimiter
            ),
            info=normalizer.to_info(user),
            extra=normalizer.to_extra(token, user),
        )
        logger.info(
            f"Authenticated with {self.provider}",
            extra={"provider": self.provider, "phase": Phase.COMPLETED.value},
        )
        return result

    def _failure(self, kind: Any, message: Any) -> AuthFailure:
        # error fields in a token body are not guaranteed to be strings
        kind = str(kind)
        message = None if message is None else str(message)
        logger.warning(
            f"Authentication with {self.provider} failed: {kind}: {message}",
            extra={
                "provider": self.provider,
                "phase": Phase.COMPLETED.value,
                "error_kind": kind,
            },
        )
        return AuthFailure(provider=self.provider, errors=[AuthError(kind=kind, message=message)])

    def cleanup(self, context: AuthContext) -> None:
        """Clear the raw provider response kept for the callback."""
        context.clear()
        context.phase = Phase.COMPLETED

    async def refresh_credentials(
        self,
        credentials: Credentials,
        overrides: Mapping[str, Any] | None = None,
    ) -> Credentials:
        """
        Refresh credentials using their refresh token.

        Entitlements cannot be recovered from a refresh response, so the
        refreshed credentials always carry an empty entitlement list.

        Raises:
            OAuthProviderError: If the provider returns an OAuth error
            OAuthClientError: On transport failure or malformed response
        """
        if not credentials.refresh_token:
            raise OAuthProviderError("No refresh token available")

        config = self._resolve_config(overrides)
        token = await self.client.refresh(config, credentials.refresh_token)
        if token.is_error:
            raise OAuthProviderError(
                token.error_description or token.error or "No access token received"
            )

        user = None
        if config.capabilities.entitlements_field:
            # TODO: fetch the real entitlements once the provider exposes them on refresh
            user = {config.capabilities.entitlements_field: []}

        return normalizer.to_credentials(
            token, user, config.capabilities, scope_delimiter=config.scope_delimiter
        )

    async def logout(
        self,
        credentials: Credentials,
        overrides: Mapping[str, Any] | None = None,
    ) -> LogoutResult:
        """End the provider session for the given credentials."""
        config = self._resolve_config(overrides)
        return await self.client.logout(config, self.credentials_to_token(credentials))

    @staticmethod
    def credentials_to_token(credentials: Credentials) -> TokenSet:
        """Turn canonical credentials back into a token set."""
        return TokenSet(
            access_token=credentials.token,
            refresh_token=credentials.refresh_token,
            expires_at=credentials.expires_at,
            token_type=credentials.token_type or "Bearer",
        )
