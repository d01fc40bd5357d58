"""
User Management Endpoints Module

This module provides CRUD endpoints for users. Listing users requires an
admin; creating, changing roles and deleting require a super admin (enforced
by the store's permission policy). The /me endpoints let every user read and
edit their own profile.
"""
from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException

from budget_tracker.api import deps
from budget_tracker.models.user import User, UserCreate, UserUpdate
from budget_tracker.services.permissions import Action, is_allowed
from budget_tracker.services.store import EntityStore

router = APIRouter()


def _ensure_email_free(store: EntityStore, email: str, user_id: str = "") -> None:
    existing = store.find_user_by_email(email)
    if existing and existing.id != user_id:
        raise HTTPException(
            status_code=400,
            detail="A user with this email already exists.",
        )


@router.get("", response_model=List[User])
def read_users(
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.PermissionChecker(Action.VIEW_USERS)),
) -> Any:
    """
    Retrieve all users.

    Only admins and super admins can access this endpoint.
    """
    return store.list_users()


@router.post("", response_model=User)
def create_user(
    *,
    store: EntityStore = Depends(deps.get_store),
    user_in: UserCreate,
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """
    Create a new user.

    Admins and super admins other than the creator are notified.

    Raises:
        HTTPException 400: If a user with this email already exists
        HTTPException 403: If the caller is not a super admin
    """
    _ensure_email_free(store, user_in.email)
    return store.create_user(user_in, actor_id=current_user.id)


@router.get("/me", response_model=User)
def read_user_me(current_user: User = Depends(deps.get_current_user)) -> Any:
    return current_user


@router.patch("/me", response_model=User)
def update_user_me(
    *,
    store: EntityStore = Depends(deps.get_store),
    user_in: UserUpdate,
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """
    Update the current user's own profile.

    Changing one's own role is rejected unless the caller is a super admin.
    """
    if user_in.email:
        _ensure_email_free(store, user_in.email, current_user.id)
    return store.update_user(current_user.id, user_in, actor_id=current_user.id)


@router.get("/{user_id}", response_model=User)
def read_user(
    user_id: str,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    if user_id != current_user.id and not is_allowed(current_user, Action.VIEW_USERS):
        raise HTTPException(status_code=403, detail="Not authorized")
    user = store.get_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.patch("/{user_id}", response_model=User)
def update_user(
    *,
    store: EntityStore = Depends(deps.get_store),
    user_id: str,
    user_in: UserUpdate,
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    if user_in.email:
        _ensure_email_free(store, user_in.email, user_id)
    user = store.update_user(user_id, user_in, actor_id=current_user.id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.delete("/{user_id}", response_model=User)
def delete_user(
    *,
    store: EntityStore = Depends(deps.get_store),
    user_id: str,
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """
    Delete a user.

    The user is removed from every project they were assigned to and their
    notifications are deleted. Budget entries they recorded are kept.
    Users cannot delete themselves.

    Raises:
        HTTPException 400: If attempting to delete yourself
        HTTPException 404: If the user doesn't exist
    """
    if user_id == current_user.id:
        raise HTTPException(status_code=400, detail="Users cannot delete themselves")
    user = store.delete_user(user_id, actor_id=current_user.id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
