"""
Mapping of raw provider payloads into canonical auth structures.

Pure functions, no I/O. A missing field yields None (or an empty list),
never an error.
"""

import logging
from typing import Any

from authcode.core.config import ProviderCapabilities
from authcode.core.domain import Credentials, Extra, Info, TokenSet, unix_now


logger = logging.getLogger(__name__)


def split_scopes(scope: Any, delimiter: str) -> list[str]:
    """
    Split a granted scope string into an ordered list.

    An empty or missing scope string yields an empty list, never [""].
    A provider that already returns a list gets it back as strings.
    """
    if not scope:
        return []
    if isinstance(scope, (list, tuple)):
        return [str(item) for item in scope]
    return str(scope).split(delimiter)


def uid(uid_field: str, token: TokenSet, userinfo: dict[str, Any] | None = None) -> str | None:
    """
    Look up the user id.

    Reads the userinfo payload when one was fetched, otherwise the extra
    fields of the token response.
    """
    source = userinfo if userinfo is not None else token.other_params
    value = source.get(str(uid_field))
    if value is None:
        return None
    return str(value)


def refresh_expires_at(
    token: TokenSet, field: str | None, now: int | None = None
) -> int | None:
    """Absolute refresh-token expiry from a relative lifetime field."""
    if not field:
        return None
    expires_in = token.other_params.get(field)
    if expires_in is None:
        return None
    try:
        lifetime = int(expires_in)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-numeric {field!r} in token response")
        return None
    return (unix_now() if now is None else now) + lifetime


def entitlements(userinfo: dict[str, Any] | None, field: str) -> list[str]:
    """Entitlement list from userinfo, comma-separated or already a list."""
    value = (userinfo or {}).get(field)
    if value is None:
        logger.warning(
            f"Provider did not return a {field!r} key for this user; "
            "check the identity provider configuration"
        )
        return []
    if isinstance(value, list):
        return [str(item) for item in value]
    return split_scopes(str(value), ",")


def to_credentials(
    token: TokenSet,
    userinfo: dict[str, Any] | None,
    capabilities: ProviderCapabilities,
    scope_delimiter: str | None = None,
    now: int | None = None,
) -> Credentials:
    """
    Build canonical credentials from a token set.

    Args:
        token: Token set from the token endpoint
        userinfo: Userinfo payload, if one was fetched
        capabilities: Provider capabilities (delimiter, extra fields)
        scope_delimiter: Overrides the capability delimiter
        now: Reference time for relative expiry fields

    Returns:
        Credentials instance
    """
    delimiter = scope_delimiter or capabilities.scope_delimiter
    other: dict[str, Any] = {
        "refresh_expires_at": refresh_expires_at(
            token, capabilities.refresh_expires_field, now=now
        )
    }
    if capabilities.entitlements_field:
        other[capabilities.entitlements_field] = entitlements(
            userinfo, capabilities.entitlements_field
        )

    return Credentials(
        token=token.access_token,
        refresh_token=token.refresh_token,
        expires_at=token.expires_at,
        token_type=token.token_type,
        expires=token.expires_at is not None,
        scopes=split_scopes(token.scope, delimiter),
        other=other,
    )


def to_info(userinfo: dict[str, Any] | None) -> Info:
    """Map a userinfo payload onto the canonical profile fields."""
    user = userinfo or {}
    return Info(
        name=user.get("name"),
        first_name=user.get("given_name"),
        last_name=user.get("family_name"),
        nickname=user.get("preferred_username"),
        email=user.get("email"),
        location=user.get("location"),
        image=user.get("avatar_url"),
        urls={
            "web_url": user.get("web_url"),
            "website_url": user.get("website_url"),
        },
    )


def to_extra(token: TokenSet, userinfo: dict[str, Any] | None) -> Extra:
    """Keep the raw token and userinfo payloads verbatim."""
    return Extra(raw_info={"token": token.model_dump(), "user": userinfo})
