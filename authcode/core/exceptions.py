"""
Domain exceptions for the OAuth2 authorization-code flow.

Client errors carry a ``kind`` from the error taxonomy so the strategy can
turn them into failure values. Only ConfigurationError is meant to escape
to the application as a fatal error.
"""


class ConfigurationError(Exception):
    """
    Raised when a provider is missing required configuration.

    This is a deployment problem (missing client_id, unknown token method,
    no redirect URI), not a user-facing failure. It is never converted
    into an AuthFailure.
    """

    pass


class OAuthClientError(Exception):
    """Base exception for errors talking to the identity provider."""

    kind = "oauth_error"

    def __init__(self, reason: str, status_code: int | None = None):
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code


class OAuthNetworkError(OAuthClientError):
    """Transport-level failure (DNS, connection refused, timeout)."""

    kind = "network"


class MalformedResponseError(OAuthClientError):
    """Provider response could not be parsed as the expected schema."""

    kind = "malformed_response"


class OAuthUnauthorizedError(OAuthClientError):
    """Provider rejected the access token (401)."""

    kind = "unauthorized"


class OAuthProviderError(OAuthClientError):
    """Provider answered with an error status or an OAuth error body."""

    kind = "provider_error"
