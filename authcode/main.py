"""
FastAPI application hosting the authorization-code strategy.

This module wires dependencies and configures the application.
Protocol logic is in authcode/core, the HTTP client in authcode/infrastructure.
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import UTC, datetime

# Configure logging FIRST, before other local imports
from authcode.logging_config import setup_global_logging

setup_global_logging()

# Now import other modules (they will use the configured logging)
from fastapi import FastAPI, Request, status  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402

from authcode.core.exceptions import ConfigurationError, OAuthClientError  # noqa: E402
from authcode.oauth import router as oauth_router  # noqa: E402
from authcode.oauth.config import get_provider_registry  # noqa: E402

logger = logging.getLogger(__name__)


# ============================================================================
# Application Lifecycle
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Loads the provider registry at startup so configuration errors are
    fatal before any request is served.
    """
    logger.info("Application starting up...")
    registry = get_provider_registry()
    logger.info(f"Enabled OAuth providers: {sorted(registry)}")
    yield
    logger.info("Shutting down application...")


app = FastAPI(
    title="OAuth2 Authorization Code Strategy",
    description="Authenticates users against external OAuth2 identity providers",
    version="0.2.0",
    lifespan=lifespan,
)


# ============================================================================
# Centralized Exception Handlers
# ============================================================================


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    """
    Handle provider configuration errors.

    These are deployment problems, never user errors: 500 Internal Server Error.
    """
    logger.error(f"Configuration error: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "status": "error",
            "message": "OAuth provider is misconfigured",
        },
    )


@app.exception_handler(OAuthClientError)
async def oauth_client_error_handler(request: Request, exc: OAuthClientError):
    """
    Handle provider errors raised outside the callback phase (refresh, logout).

    Returns 502 Bad Gateway: the upstream identity provider failed.
    """
    logger.error(
        f"OAuth provider error: {exc.reason}",
        extra={"error_kind": exc.kind, "status_code": exc.status_code},
    )
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={
            "status": "error",
            "kind": exc.kind,
            "message": exc.reason,
        },
    )


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "authcode",
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(oauth_router.router)


# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8080))
    uvicorn.run(app, host="0.0.0.0", port=port)
