"""FastAPI auth dependencies.

These are used as Depends() in route handlers and at include_router level.

Two mechanisms:
1. X-API-Key header (shared service key) guards the account and session
   routes; callers are trusted front-ends, not end users.
2. Bearer JWT in the Authorization header, checked statelessly.
"""

import secrets
from typing import Optional

import structlog
from fastapi import Header, HTTPException

from tollgate.config import settings

logger = structlog.get_logger()


async def require_api_key(x_api_key: Optional[str] = Header(None)) -> None:
    """Reject the request unless X-API-Key matches TOLLGATE_API_KEY."""
    expected = settings.api_key
    if not expected:
        logger.error("auth.api_key_not_configured")
        raise HTTPException(status_code=500, detail="Server configuration error")

    if not x_api_key:
        raise HTTPException(
            status_code=401,
            detail="Please provide an API key in the X-API-Key header",
        )

    if not secrets.compare_digest(x_api_key.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Invalid API key")


async def get_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    """Extract the raw token from `Authorization: Bearer <token>`.

    A missing header yields an empty string; the verifier rejects it.
    """
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip()
    return ""
