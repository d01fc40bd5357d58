"""
API Dependencies Module

This module provides FastAPI dependency functions for reaching the entity store
and for authenticating the caller. It supports both bearer tokens (for API
clients) and an `access_token` cookie (for browser clients).
"""
from typing import List, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from budget_tracker.core.config import Settings
from budget_tracker.core.exceptions import EntityNotFound
from budget_tracker.core.security import decode_access_token
from budget_tracker.models.user import User, UserRole
from budget_tracker.services.permissions import Action, is_allowed
from budget_tracker.services.store import EntityStore

# auto_error=False allows us to check cookies as a fallback
reusable_oauth2 = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)


def get_config(request: Request) -> Settings:
    return request.app.state.config


def get_store(request: Request) -> EntityStore:
    """The EntityStore built by the application lifespan."""
    return request.app.state.store


def get_current_user(
    request: Request,
    store: EntityStore = Depends(get_store),
    config: Settings = Depends(get_config),
    token: Optional[str] = Depends(reusable_oauth2),
) -> User:
    """
    Dependency that retrieves and validates the current authenticated user.

    The Authorization header is checked first, then the access_token cookie
    (stored as "Bearer <token>").

    Raises:
        HTTPException 401: If no authentication token is provided
        HTTPException 403: If the token is invalid or expired
        HTTPException 404: If the user referenced in the token doesn't exist
    """
    if not token:
        token = request.cookies.get("access_token")
        if token and token.startswith("Bearer "):
            token = token[len("Bearer "):]

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = decode_access_token(token, config)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Could not validate credentials",
        )

    try:
        user = store.get_user(user_id)
    except EntityNotFound:
        user = None
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


class RoleChecker:
    """
    Dependency factory for checking user roles.

    Usage: Depends(RoleChecker([UserRole.ADMIN, UserRole.SUPER_ADMIN]))
    """
    def __init__(self, allowed_roles: List[UserRole]):
        self.allowed_roles = allowed_roles

    def __call__(self, current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in self.allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"The user does not have enough privileges. Required roles: {[r.value for r in self.allowed_roles]}"
            )
        return current_user


class PermissionChecker:
    """
    Dependency factory for target-independent actions of the permission policy.

    Usage: Depends(PermissionChecker(Action.VIEW_USERS))
    """
    def __init__(self, action: Action):
        self.action = action

    def __call__(self, current_user: User = Depends(get_current_user)) -> User:
        if not is_allowed(current_user, self.action):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Not allowed to {self.action.value}",
            )
        return current_user

