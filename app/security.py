"""Security dependencies and rate limiting for the API."""

import logging

from fastapi import FastAPI, HTTPException, Security, status
from fastapi.security import APIKeyHeader
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from app.dependencies import get_settings

logger = logging.getLogger(__name__)

# API Key header configuration
API_KEY_HEADER = APIKeyHeader(name="X-API-Key", auto_error=False)

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{get_settings().rate_limit_per_minute}/minute"],
)


async def verify_api_key(
    api_key: str | None = Security(API_KEY_HEADER),
) -> str:
    """Verify the API key from request header.

    If API key authentication is disabled, returns "anonymous".
    Otherwise, validates the provided key against the configured key.

    Args:
        api_key: The API key from the X-API-Key header.

    Returns:
        The validated API key or "anonymous" if auth is disabled.

    Raises:
        HTTPException: If API key is missing or invalid.
    """
    settings = get_settings()

    if not settings.api_key_enabled:
        return "anonymous"

    if not api_key:
        logger.warning("API key missing in request")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key is required. Provide X-API-Key header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if api_key != settings.api_key:
        logger.warning("Invalid API key attempt")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    logger.debug("API key validated successfully")
    return api_key


def setup_rate_limiter(app: FastAPI) -> None:
    """Configure rate limiter on the FastAPI app.

    Args:
        app: The FastAPI application instance.
    """
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    logger.info("Rate limiting enabled (%d/minute)", get_settings().rate_limit_per_minute)
