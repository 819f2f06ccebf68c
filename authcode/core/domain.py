"""
Core domain models for the authorization-code flow.

These models are independent of the web framework and of the HTTP client.
TokenSet mirrors what the token endpoint returns; Credentials, Info and
Extra are the canonical, provider-neutral shapes handed to the host.
"""

import time
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# Keys lifted out of a token response; everything else lands in other_params.
_STANDARD_TOKEN_KEYS = {"access_token", "refresh_token", "expires_at", "expires_in", "token_type"}


def unix_now() -> int:
    """Current time as integer Unix epoch seconds."""
    return int(time.time())


class TokenSet(BaseModel):
    """
    Access/refresh token pair returned by the provider.

    A None access_token is the sentinel for "the provider answered with an
    OAuth error instead of a token"; other_params then holds ``error`` and
    usually ``error_description``.
    """

    access_token: str | None = Field(default=None, description="OAuth2 access token")
    refresh_token: str | None = Field(default=None, description="OAuth2 refresh token")
    expires_at: int | None = Field(
        default=None, description="Access token expiry (Unix epoch seconds)"
    )
    token_type: str = Field(default="Bearer", description="Token type")
    other_params: dict[str, Any] = Field(
        default_factory=dict,
        description="Provider-specific fields (scope, uid fields, error fields)",
    )

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_response(cls, body: dict[str, Any], now: int | None = None) -> "TokenSet":
        """
        Create a TokenSet from a raw token endpoint response.

        A relative ``expires_in`` is turned into an absolute ``expires_at``
        here and only here, so re-reading the token never drifts.

        Args:
            body: Decoded token endpoint response
            now: Reference time in epoch seconds (defaults to the clock)

        Returns:
            TokenSet instance
        """
        expires_at = body.get("expires_at")
        if expires_at is not None:
            expires_at = int(expires_at)
        elif body.get("expires_in") not in (None, ""):
            expires_at = (unix_now() if now is None else now) + int(body["expires_in"])

        return cls(
            access_token=body.get("access_token") or None,
            refresh_token=body.get("refresh_token"),
            expires_at=expires_at,
            token_type=body.get("token_type") or "Bearer",
            other_params={
                key: value
                for key, value in body.items()
                if key not in _STANDARD_TOKEN_KEYS
            },
        )

    @property
    def is_error(self) -> bool:
        """True when the provider returned an error instead of a token."""
        return self.access_token is None

    @property
    def error(self) -> str | None:
        return self.other_params.get("error")

    @property
    def error_description(self) -> str | None:
        return self.other_params.get("error_description")

    @property
    def scope(self) -> str | None:
        return self.other_params.get("scope")


class Credentials(BaseModel):
    """Canonical credentials handed back to the host application."""

    token: str | None = None
    refresh_token: str | None = None
    expires_at: int | None = None
    token_type: str | None = None
    expires: bool = False
    scopes: list[str] = Field(default_factory=list)
    other: dict[str, Any] = Field(default_factory=dict)


class Info(BaseModel):
    """
    Canonical user profile. Every field is optional.

    Values are copied from the provider as-is, whatever their type.
    """

    name: Any = None
    first_name: Any = None
    last_name: Any = None
    nickname: Any = None
    email: Any = None
    location: Any = None
    image: Any = None
    urls: dict[str, Any] = Field(default_factory=dict)


class Extra(BaseModel):
    """Raw provider payloads, kept verbatim for debugging."""

    raw_info: dict[str, Any] = Field(default_factory=dict)


class AuthResult(BaseModel):
    """Successful outcome of the callback phase."""

    provider: str
    uid: str | None = None
    credentials: Credentials
    info: Info = Field(default_factory=Info)
    extra: Extra = Field(default_factory=Extra)


class AuthError(BaseModel):
    """A single (kind, message) failure entry."""

    kind: str
    message: str | None = None


class AuthFailure(BaseModel):
    """Failed outcome of the callback phase."""

    provider: str
    errors: list[AuthError] = Field(default_factory=list)


class Phase(str, Enum):
    """Lifecycle of one authorization attempt."""

    IDLE = "idle"
    REQUEST_ISSUED = "request_issued"
    CALLBACK_PENDING = "callback_pending"
    COMPLETED = "completed"


class AuthContext(BaseModel):
    """
    Per-request scratch space owned by the host.

    Holds the raw token and userinfo while the callback phase runs. The
    strategy clears it once the phase completes so nothing leaks into an
    unrelated request.
    """

    phase: Phase = Phase.IDLE
    token: TokenSet | None = None
    user: dict[str, Any] | None = None
    outcome: AuthResult | AuthFailure | None = None

    def clear(self) -> None:
        """Drop provider-held ephemeral state."""
        self.token = None
        self.user = None


class RedirectDirective(BaseModel):
    """Outbound redirect produced by the request phase."""

    status_code: int = 302
    location: str


class LogoutResult(BaseModel):
    """Provider answer to a logout call."""

    status_code: int
    body: Any = None
