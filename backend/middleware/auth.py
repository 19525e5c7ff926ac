"""API key check for the tool invocation endpoints."""

import logging
import secrets
from typing import Optional
from fastapi import HTTPException, Request, status, Depends
from fastapi.security import APIKeyHeader, HTTPBearer, HTTPAuthorizationCredentials
from middleware.state import get_settings
from config import Settings

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def key_matches(provided: Optional[str], expected: str) -> bool:
    if not provided:
        return False
    # compare_digest only accepts ASCII str, headers may carry any latin-1 text
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def require_api_key(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    header_key: Optional[str] = Depends(api_key_header),
    settings: Settings = Depends(get_settings)
) -> None:
    """
    Dependency gating the invocation endpoints.

    When API_KEY is configured the caller must send it either as
    `Authorization: Bearer <key>` or `X-API-Key: <key>`; the request is
    accepted if either header matches. When it is not configured every
    request is let through.

    Usage in routes:
        @router.post("/execute", dependencies=[Depends(require_api_key)])
        async def execute(...):
            ...
    """
    if not settings.api_key:
        return

    candidates = [credentials.credentials if credentials else None, header_key]

    if not any(key_matches(candidate, settings.api_key) for candidate in candidates):
        logger.warning("Rejected unauthenticated call to %s", request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
            headers={"WWW-Authenticate": "Bearer"},
        )
