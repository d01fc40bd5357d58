from enum import Enum
from typing import Any, Dict, Optional

from pydantic import Field

from budget_tracker.models.base import EntityModel, new_id, utc_now


class NotificationType(str, Enum):
    PROJECT_CREATED = "project_created"
    PROJECT_UPDATED = "project_updated"
    PROJECT_COMPLETED = "project_completed"
    BUDGET_ALERT = "budget_alert"
    BUDGET_ENTRY_ADDED = "budget_entry_added"
    BUDGET_CODE_ALERT = "budget_code_alert"
    USER_ASSIGNED = "user_assigned"


class Notification(EntityModel):
    """
    A message addressed to one user.

    `data` carries context keyed by projectId, percentage, budget, spent,
    amount, type or budgetCodeId; consumers ignore keys they do not know.
    Read state only moves from unread to read.
    """
    id: str = Field(default_factory=new_id)
    user_id: str
    type: NotificationType
    title: str
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)
    read: bool = False
    created_at: str = Field(default_factory=utc_now)
    action_url: Optional[str] = None


class NotificationCreate(EntityModel):
    user_id: str
    type: NotificationType
    title: str
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)
    action_url: Optional[str] = None
