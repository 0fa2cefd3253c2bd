"""
Kindred Backend — FastAPI Dependencies
=======================================

What:  Caller identity and admin gate, injected into routes with Depends().
Why:   Authentication itself (login, passwords, sessions) lives in the upstream
       session layer. It forwards the authenticated user's id as X-User-ID,
       and this backend only reads that header.
"""

from typing import Optional

from fastapi import Depends, Header

from kindred.config import settings
from kindred.exceptions import AuthenticationError, PermissionDeniedError


async def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-ID"),
) -> int:
    """
    Resolve the authenticated user id for this request.

    Usage:
        @router.get("/protected")
        async def protected(user_id: int = Depends(get_current_user_id)):
            ...

    Raises:
        AuthenticationError: header missing, not an integer, or not positive (→ 401)
    """
    if not x_user_id:
        raise AuthenticationError(message="Missing X-User-ID header")
    try:
        user_id = int(x_user_id.strip())
    except ValueError:
        raise AuthenticationError(message="Invalid X-User-ID header") from None
    if user_id <= 0:
        raise AuthenticationError(message="Invalid X-User-ID header")
    return user_id


async def require_admin(user_id: int = Depends(get_current_user_id)) -> int:
    """Allow only users listed in ADMIN_USER_IDS (→ 403 otherwise)."""
    if user_id not in settings.admin_user_id_set:
        raise PermissionDeniedError(context={"user_id": user_id})
    return user_id
