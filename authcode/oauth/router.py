"""
OAuth2 API endpoints.

Mounts the authorization-code strategy on HTTP routes:
- GET /auth/{provider} - Start OAuth flow (redirect to provider)
- GET /auth/{provider}/callback - Handle callback, return auth result
- POST /auth/{provider}/refresh - Refresh stored credentials
- POST /auth/{provider}/logout - End the provider session
"""

import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from authcode.core.domain import AuthContext, AuthFailure, Credentials
from authcode.oauth.dependencies import Settings, Strategy, ValidProvider


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _context(request: Request) -> AuthContext:
    """Per-request scratch space for the strategy."""
    context = AuthContext()
    request.state.auth_context = context
    return context


@router.get("/{provider}")
async def request_phase(
    provider: ValidProvider,
    request: Request,
    strategy: Strategy,
    settings: Settings,
):
    """
    Start OAuth2 authorization flow.

    Redirects the user to the provider's authorization page. ``scope`` and
    ``state`` query parameters are forwarded to the provider.

    Args:
        provider: OAuth provider name (keycloak, ring_central)
        request: Starlette request (for query params)
        strategy: Strategy for the provider
        settings: OAuth settings (for the callback URL)

    Returns:
        302 redirect to provider's authorization page
    """
    directive = strategy.request_phase(
        dict(request.query_params),
        settings.get_callback_url(provider),
        context=_context(request),
    )
    return RedirectResponse(url=directive.location, status_code=directive.status_code)


@router.get("/{provider}/callback")
async def callback_phase(
    provider: ValidProvider,
    request: Request,
    strategy: Strategy,
    settings: Settings,
):
    """
    Handle OAuth2 callback from provider.

    Exchanges the authorization code for tokens and returns the normalized
    auth result.

    Returns:
        200 with the auth result, or 401 with the failure list
    """
    outcome = await strategy.callback_phase(
        dict(request.query_params),
        settings.get_callback_url(provider),
        context=_context(request),
    )

    if isinstance(outcome, AuthFailure):
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={
                "status": "error",
                "errors": [error.model_dump() for error in outcome.errors],
            },
        )

    return {"status": "success", "auth": outcome.model_dump(mode="json")}


@router.post("/{provider}/refresh")
async def refresh(
    provider: ValidProvider,
    credentials: Credentials,
    strategy: Strategy,
):
    """
    Refresh credentials with their refresh token.

    Provider and transport errors are handled by the OAuthClientError
    exception handler.
    """
    refreshed = await strategy.refresh_credentials(credentials)

    logger.info(f"Refreshed credentials for {provider}", extra={"provider": provider})

    return {"status": "success", "credentials": refreshed.model_dump(mode="json")}


@router.post("/{provider}/logout")
async def logout(
    provider: ValidProvider,
    credentials: Credentials,
    strategy: Strategy,
):
    """End the provider session for the given credentials."""
    result = await strategy.logout(credentials)

    logger.info(f"Logged out of {provider}", extra={"provider": provider})

    return {
        "status": "success",
        "message": f"Logged out of {provider}",
        "provider_status": result.status_code,
    }
