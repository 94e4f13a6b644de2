"""
Authentication — Supabase session verification for route protection.

The caller presents a Supabase access token either as a Bearer header
or in the sb-access-token cookie. The token is checked with Supabase
Auth and the role is read from profiles.
Version: 1.0.0
"""
import logging
from typing import List, Optional
from urllib.parse import unquote

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from storefront.container import get_profile_store
from storefront.core.exceptions import AuthenticationError, StoreError

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)

ACCESS_TOKEN_COOKIE = "sb-access-token"
STAFF_ROLES = ["admin", "staff"]


def extract_token(
    request: Request, credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    """Bearer header first, then the sb-access-token cookie."""
    if credentials and credentials.credentials.strip():
        return credentials.credentials.strip()
    cookie = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if cookie and cookie.strip():
        return unquote(cookie.strip())
    return None


async def verify_access_token(token: str) -> dict:
    """
    Validate a Supabase access token and load the caller's role.

    Raises:
        AuthenticationError: token rejected or user role unreadable
    """
    profile_store = get_profile_store()
    try:
        user = profile_store.get_auth_user(token)
    except Exception as e:
        raise AuthenticationError(f"Auth verification failed: {e}") from e
    if user is None:
        raise AuthenticationError("Invalid or expired token")

    try:
        role = await profile_store.get_role(user["id"])
    except StoreError as e:
        raise AuthenticationError("Could not verify user role") from e

    return {"user_id": user["id"], "email": user["email"], "role": role}


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """Return {"user_id", "email", "role"} for the calling session."""
    token = extract_token(request, credentials)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "UNAUTHORIZED", "message": "Missing authorization token"},
        )

    try:
        user = await verify_access_token(token)
    except AuthenticationError as e:
        logger.warning("Authentication failed - %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "UNAUTHORIZED", "message": str(e)},
        )

    logger.debug("Authentication successful - user_id: %s role: %s", user["user_id"], user["role"])
    return user


def require_roles(allowed_roles: List[str]):
    """
    Dependency factory for requiring one of the given profile roles.

    Usage:
        @router.post("/import")
        async def endpoint(user: dict = Depends(require_roles(["admin"]))):
            ...
    """
    async def check_roles(user: dict = Depends(get_current_user)) -> dict:
        if user.get("role") not in allowed_roles:
            logger.warning(
                "Access denied - user %s has role %s, needs one of %s",
                user.get("user_id"),
                user.get("role"),
                allowed_roles,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "FORBIDDEN", "message": "Admin access required"},
            )
        return user

    return check_roles


require_staff = require_roles(STAFF_ROLES)
