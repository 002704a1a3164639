"""
Request authentication.

Access tokens are Supabase JWTs sent as ``Authorization: Bearer <token>``.
They are validated by Supabase itself; the caller's role then comes from
the ``profiles`` table.
"""

from typing import Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from matlinks.auth.client import SupabaseAuthClient
from matlinks.core.database import get_session
from matlinks.core.database.entities.profiles import Profile
from matlinks.core.logging_config import get_logger

from .providers import get_auth_client

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
    session: AsyncSession = Depends(get_session),
) -> Profile:
    """
    Resolve the caller's profile from the bearer token.

    Raises:
        HTTPException: 401 when the token is missing or rejected by Supabase,
            403 when the user has no profile row.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await auth_client.get_user(credentials.credentials)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    profile = await session.get(Profile, user.id)
    if profile is None:
        logger.warning(f"Authenticated user {user.id} has no profile")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Profile not found")
    return profile


def require_roles(*roles: str) -> Callable:
    """Build a dependency that admits only profiles whose role is in ``roles``."""

    async def _check_role(profile: Profile = Depends(get_current_user)) -> Profile:
        if profile.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return profile

    return _check_role
