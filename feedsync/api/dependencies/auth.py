"""
API Key authentication dependencies.

Optional authentication controlled by API_AUTH_ENABLED environment variable.
When enabled:
- control endpoints require an X-API-Key header matching API_KEY
- the feed file also accepts the key as a ?token= query parameter, since
  catalog fetchers typically only take a URL

Settings are read per request so they follow the current environment.
"""

import os
from typing import Optional

from fastapi import HTTPException, Query, Security, status
from fastapi.security import APIKeyHeader

# Header definition
api_key_header = APIKeyHeader(
    name="X-API-Key",
    auto_error=False,  # We handle the error ourselves for optional auth
    description="API key for authentication (required when API_AUTH_ENABLED=true)",
)


def is_auth_enabled() -> bool:
    return os.getenv("API_AUTH_ENABLED", "false").lower() == "true"


def _expected_key() -> str:
    return os.getenv("API_KEY", "")


def _check_key(api_key: Optional[str]) -> Optional[str]:
    """
    Raises:
        HTTPException: 401 if auth enabled and key is missing/invalid
    """
    if not is_auth_enabled():
        return None

    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key. Provide X-API-Key header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    expected = _expected_key()
    if not expected or api_key != expected:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key


async def verify_api_key(
    api_key: Optional[str] = Security(api_key_header),
) -> Optional[str]:
    """
    Verify API key from X-API-Key header.

    Returns:
        The API key if valid, None if auth disabled
    """
    return _check_key(api_key)


async def verify_feed_access(
    api_key: Optional[str] = Security(api_key_header),
    token: Optional[str] = Query(default=None, description="API key as query parameter"),
) -> Optional[str]:
    """Verify API key from X-API-Key header or ?token= parameter."""
    return _check_key(api_key or token)
