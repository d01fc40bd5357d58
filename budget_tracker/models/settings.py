"""
AppSettings Model Module

User-facing preferences shared by the whole installation. Loaded once at
startup from persistence, changed through EntityStore.update_settings and
persisted on every change.
"""
from typing import List, Literal, Optional

from pydantic import Field

from budget_tracker.models.base import EntityModel, UpdateModel
from budget_tracker.models.project import ProjectPriority, ProjectStatus

DateFormat = Literal["DD/MM/YYYY", "MM/DD/YYYY", "YYYY-MM-DD"]

DEFAULT_BUDGET_CATEGORIES = [
    "Design",
    "Development",
    "Marketing",
    "Software",
    "Research",
    "Advertising",
    "Equipment",
    "Travel",
    "Training",
    "Other",
]


class AppSettings(EntityModel):
    currency: str = "MYR"
    date_format: DateFormat = "DD/MM/YYYY"
    fiscal_year_start: str = Field(default="01-01", pattern=r"^\d{2}-\d{2}$")  # MM-DD
    budget_alert_threshold: float = Field(default=75, ge=0, le=100)  # percent of budget
    auto_backup: bool = True
    email_notifications: bool = True
    company_name: str = ""
    default_project_status: ProjectStatus = ProjectStatus.PLANNING
    default_project_priority: ProjectPriority = ProjectPriority.MEDIUM
    budget_categories: List[str] = Field(default_factory=lambda: list(DEFAULT_BUDGET_CATEGORIES))
    max_project_duration: int = Field(default=365, gt=0)  # days
    require_budget_approval: bool = False
    allow_negative_budget: bool = False


class AppSettingsUpdate(UpdateModel):
    currency: Optional[str] = Field(default=None, min_length=1)
    date_format: Optional[DateFormat] = None
    fiscal_year_start: Optional[str] = Field(default=None, pattern=r"^\d{2}-\d{2}$")
    budget_alert_threshold: Optional[float] = Field(default=None, ge=0, le=100)
    auto_backup: Optional[bool] = None
    email_notifications: Optional[bool] = None
    company_name: Optional[str] = None
    default_project_status: Optional[ProjectStatus] = None
    default_project_priority: Optional[ProjectPriority] = None
    budget_categories: Optional[List[str]] = None
    max_project_duration: Optional[int] = Field(default=None, gt=0)
    require_budget_approval: Optional[bool] = None
    allow_negative_budget: Optional[bool] = None
