"""
Notification Endpoints Module

Each user reads and manages their own notifications. Lists are newest first.
"""
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from budget_tracker.api import deps
from budget_tracker.models.notification import Notification, NotificationCreate
from budget_tracker.models.user import User, UserRole
from budget_tracker.services.store import EntityStore

router = APIRouter()


@router.get("", response_model=List[Notification])
def list_notifications(
    unread_only: bool = False,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    return store.list_notifications(current_user.id, unread_only)


@router.get("/unread-count", response_model=Dict[str, int])
def unread_count(
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    return {"count": store.get_unread_notification_count(current_user.id)}


@router.post("", response_model=Notification)
def add_notification(
    notification_in: NotificationCreate,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.RoleChecker([UserRole.ADMIN, UserRole.SUPER_ADMIN])),
) -> Any:
    """
    Send a notification to a user directly.

    Only admins and super admins can access this endpoint.
    """
    if not store.get_user(notification_in.user_id):
        raise HTTPException(status_code=400, detail="Recipient does not exist")
    return store.add_notification(notification_in)


@router.post("/read-all", response_model=Dict[str, int])
def mark_all_read(
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """Mark every unread notification of the current user as read."""
    changed = store.mark_all_notifications_as_read(current_user.id, actor_id=current_user.id)
    return {"updated": changed}


@router.post("/{notification_id}/read", response_model=Notification)
def mark_read(
    notification_id: str,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    notification = store.mark_notification_as_read(notification_id, actor_id=current_user.id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification


@router.delete("/{notification_id}")
def delete_notification(
    notification_id: str,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    if not store.delete_notification(notification_id, actor_id=current_user.id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"status": "success", "detail": "Notification deleted"}
