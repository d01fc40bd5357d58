"""
Permission Policy Module

Single place that decides whether an actor may perform an action. The store
calls it before mutating when an actor is named, and the API layer uses it for
early rejection; both see the same answers.
"""
from enum import Enum
from typing import Any, Optional

from budget_tracker.core.exceptions import PermissionDenied
from budget_tracker.models.budget import BudgetEntry
from budget_tracker.models.notification import Notification
from budget_tracker.models.project import Project
from budget_tracker.models.user import User, UserRole


class Action(str, Enum):
    VIEW_USERS = "view users"
    MANAGE_USERS = "manage users"
    MANAGE_ORGANIZATION = "manage divisions and units"
    DELETE_ORGANIZATION = "delete divisions and units"
    MANAGE_BUDGET_CODES = "manage budget codes"
    DELETE_BUDGET_CODE = "delete budget codes"
    CREATE_PROJECT = "create projects"
    UPDATE_PROJECT = "update this project"
    DELETE_PROJECT = "delete this project"
    CREATE_ENTRY = "record entries on this project"
    CHANGE_ENTRY = "change this budget entry"
    UPDATE_SETTINGS = "update settings"
    MANAGE_NOTIFICATION = "manage this notification"
    MAINTAIN_DATA = "rebuild stored figures"


SUPER_ADMIN_ONLY = {
    Action.MANAGE_USERS,
    Action.DELETE_ORGANIZATION,
    Action.DELETE_BUDGET_CODE,
    Action.UPDATE_SETTINGS,
    Action.MAINTAIN_DATA,
}

ADMIN_ONLY = {
    Action.VIEW_USERS,
    Action.MANAGE_ORGANIZATION,
    Action.MANAGE_BUDGET_CODES,
}


def is_allowed(actor: User, action: Action, target: Optional[Any] = None) -> bool:
    """
    Return True when `actor` may perform `action` on `target`.

    Super admins may do everything. Target-dependent actions:
    - projects: admins may update/delete projects they created, assigned users
      may update them
    - entries: admins, the project's members and creator may record entries;
      admins and the entry's creator may change them
    - notifications: only the addressee
    """
    if actor.role == UserRole.SUPER_ADMIN:
        return True
    if action in SUPER_ADMIN_ONLY:
        return False
    if action in ADMIN_ONLY:
        return actor.is_privileged
    if action == Action.CREATE_PROJECT:
        return True

    if action in (Action.UPDATE_PROJECT, Action.DELETE_PROJECT):
        if not isinstance(target, Project):
            return False
        if actor.is_privileged and target.created_by == actor.id:
            return True
        return action == Action.UPDATE_PROJECT and actor.id in target.assigned_users

    if action == Action.CREATE_ENTRY:
        if actor.is_privileged:
            return True
        return isinstance(target, Project) and (
            actor.id in target.assigned_users or target.created_by == actor.id
        )

    if action == Action.CHANGE_ENTRY:
        if actor.is_privileged:
            return True
        return isinstance(target, BudgetEntry) and target.created_by == actor.id

    if action == Action.MANAGE_NOTIFICATION:
        return isinstance(target, Notification) and target.user_id == actor.id

    return False


def check_permission(actor: Optional[User], action: Action, target: Optional[Any] = None) -> None:
    """Raise PermissionDenied unless the actor exists and is allowed."""
    if actor is None:
        raise PermissionDenied(action.value)
    if not is_allowed(actor, action, target):
        raise PermissionDenied(action.value, actor.role.value)
