"""API key check and request throttling for the job trigger API."""

import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)

limiter = Limiter(key_func=get_remote_address)


def job_rate_limit() -> str:
    """Rate limit applied to every job trigger, e.g. ``30/minute``."""
    return get_settings().job_rate_limit


def verify_api_key(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer),
    settings: Settings = Depends(get_settings),
) -> str:
    """Check the bearer token against the configured API key.

    Raises:
        HTTPException: 500 when no key is configured, 401 when the token is
            missing or does not match.
    """
    if not settings.api_key:
        logger.error("Job API called but PAYOUTS_SYNC_API_KEY is not set")
        raise HTTPException(status_code=500, detail="Server configuration error")
    supplied = credentials.credentials if credentials else ""
    if not secrets.compare_digest(supplied.encode(), settings.api_key.encode()):
        logger.warning("Rejected job API call with a missing or invalid API key")
        raise HTTPException(
            status_code=401,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return supplied
