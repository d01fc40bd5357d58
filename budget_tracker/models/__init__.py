from .base import EntityModel, UpdateModel, new_id, utc_now
from .user import User, UserCreate, UserUpdate, UserRole, make_initials
from .organization import Division, DivisionCreate, DivisionUpdate, Unit, UnitCreate, UnitUpdate
from .project import Project, ProjectCreate, ProjectUpdate, ProjectStatus, ProjectPriority
from .budget import (
    BudgetCode, BudgetCodeCreate, BudgetCodeUpdate,
    BudgetEntry, BudgetEntryCreate, BudgetEntryUpdate, EntryType,
)
from .notification import Notification, NotificationCreate, NotificationType
from .settings import AppSettings, AppSettingsUpdate

__all__ = [
    "EntityModel", "UpdateModel", "new_id", "utc_now",
    "User", "UserCreate", "UserUpdate", "UserRole", "make_initials",
    "Division", "DivisionCreate", "DivisionUpdate",
    "Unit", "UnitCreate", "UnitUpdate",
    "Project", "ProjectCreate", "ProjectUpdate", "ProjectStatus", "ProjectPriority",
    "BudgetCode", "BudgetCodeCreate", "BudgetCodeUpdate",
    "BudgetEntry", "BudgetEntryCreate", "BudgetEntryUpdate", "EntryType",
    "Notification", "NotificationCreate", "NotificationType",
    "AppSettings", "AppSettingsUpdate",
]
