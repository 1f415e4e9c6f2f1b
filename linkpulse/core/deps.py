"""Dependency injection utilities for FastAPI routes."""

from typing import Annotated

from fastapi import Cookie, Depends, Header, HTTPException, Request, status
from sqlalchemy import select

from linkpulse.core.database import AsyncSessionDep
from linkpulse.core.redis import LinkCache
from linkpulse.core.security import decode_access_token
from linkpulse.models.user import User
from linkpulse.services.click_storage import ClickStorageService

# Cookie name for auth token
AUTH_COOKIE_NAME = "linkpulse_token"


async def get_token(
    linkpulse_token: Annotated[str | None, Cookie()] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> str | None:
    """Extract auth token from the httpOnly cookie or a Bearer header."""
    if linkpulse_token:
        return linkpulse_token
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    return None


async def get_current_user(
    session: AsyncSessionDep,
    token: Annotated[str | None, Depends(get_token)],
) -> User:
    """Get current authenticated user.

    Raises HTTPException 401 if not authenticated.
    Use this for protected routes.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if token is None:
        raise credentials_exception

    token_data = decode_access_token(token)
    if token_data is None:
        raise credentials_exception

    result = await session.execute(select(User).where(User.id == token_data.user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise credentials_exception

    return user


def get_link_cache(request: Request) -> LinkCache | None:
    """Link cache created at startup, or None when caching is disabled."""
    return request.app.state.link_cache


def get_click_storage(request: Request) -> ClickStorageService:
    """Click storage service created at startup."""
    return request.app.state.click_storage


# Type aliases for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
LinkCacheDep = Annotated[LinkCache | None, Depends(get_link_cache)]
ClickStorageDep = Annotated[ClickStorageService, Depends(get_click_storage)]
