"""
Auth utilities for the TubeScript API.

Resolves the caller's Identity:
1. Bearer JWT (HS256, AUTH_JWT_SECRET) -> authenticated user from 'sub'
2. X-User-Id header (local development and tests; ignored when ENV=production)
3. Otherwise anonymous, with the count the client keeps in the
   anonymousScriptCount cookie
"""
import logging
from typing import Optional

import jwt
from fastapi import Header, HTTPException, Request

from tubescript.core.config import settings
from tubescript.features.usage.gate import ANONYMOUS_USAGE_KEY
from tubescript.models.user import Identity

logger = logging.getLogger("tubescript")


def verify_jwt(token: str, secret: Optional[str] = None) -> dict:
    """
    Verify a bearer JWT and return its claims.

    Raises:
        HTTPException 401: Invalid, expired or unverifiable token
    """
    key = secret or settings.AUTH_JWT_SECRET
    if not key:
        logger.debug("No AUTH_JWT_SECRET configured, rejecting bearer token")
        raise HTTPException(status_code=401, detail="Token verification unavailable")

    try:
        claims = jwt.decode(
            token,
            key,
            algorithms=["HS256"],
            options={"verify_signature": True, "verify_exp": True, "verify_aud": False},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError as e:
        logger.debug(f"Invalid token: {e}")
        raise HTTPException(status_code=401, detail="Invalid token")

    if not claims.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid token")
    return claims


def _settings_for(request: Request):
    return getattr(request.app.state, "settings", None) or settings


def trusts_user_id_header(settings_obj) -> bool:
    """X-User-Id is a development shortcut; production only accepts bearer tokens."""
    return (settings_obj.ENV or "").lower() != "production"


def anonymous_count_from_cookie(raw: Optional[str]) -> int:
    """Parse the client-held counter; anything unreadable counts as zero."""
    if not raw:
        return 0
    try:
        return max(0, int(raw))
    except ValueError:
        return 0


async def get_identity(
    request: Request,
    x_user_id: Optional[str] = Header(None, description="Development/test user ID"),
) -> Identity:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        claims = verify_jwt(auth_header[7:], _settings_for(request).AUTH_JWT_SECRET)
        return Identity.for_user(claims["sub"], email=claims.get("email"))

    if x_user_id and x_user_id.strip() and trusts_user_id_header(_settings_for(request)):
        return Identity.for_user(x_user_id.strip())

    return Identity.for_anonymous(anonymous_count_from_cookie(request.cookies.get(ANONYMOUS_USAGE_KEY)))


async def get_current_user_id(
    request: Request,
    x_user_id: Optional[str] = Header(None, description="Development/test user ID"),
) -> str:
    """
    Require an authenticated caller.

    Raises:
        HTTPException 401: No bearer token, and no X-User-Id header outside production
    """
    identity = await get_identity(request, x_user_id)
    if identity.anonymous:
        raise HTTPException(status_code=401, detail="User not authenticated")
    return identity.user_id
