"""
Project Model Module

This module defines the Project model for tracking work with a budget,
a timeline, assigned users and the budget codes it may charge.
"""
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator

from budget_tracker.models.base import EntityModel, UpdateModel, new_id, unique_ids, utc_now


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ProjectPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Project(EntityModel):
    """
    Project with budget tracking.

    Attributes:
        id: UUID assigned on creation
        name: Project name
        description: Free text description
        unit_id: Unit the project is filed under, blank once that unit is deleted
        status: Lifecycle status
        priority: Priority level
        start_date: Start date in ISO format (YYYY-MM-DD)
        end_date: End date in ISO format (YYYY-MM-DD)
        budget: Allocated amount
        spent: Sum of the project's expense entries, maintained by the store
        assigned_users: Ids of users working on the project
        budget_codes: Ids of budget codes entries of this project may charge
        created_by: Id of the creating user
        created_at: ISO timestamp when the project was created
        updated_at: ISO timestamp when the project was last modified
    """
    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""
    unit_id: str = ""
    status: ProjectStatus = ProjectStatus.PLANNING
    priority: ProjectPriority = ProjectPriority.MEDIUM
    start_date: str = ""
    end_date: str = ""
    budget: float = 0
    spent: float = 0
    assigned_users: List[str] = Field(default_factory=list)
    budget_codes: List[str] = Field(default_factory=list)
    created_by: str = ""
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)

    @field_validator("assigned_users", "budget_codes", mode="before")
    @classmethod
    def dedupe_ids(cls, v):
        if v is None:
            return []
        return unique_ids(v)

    @property
    def usage_percentage(self) -> float:
        return self.spent / self.budget * 100 if self.budget > 0 else 0.0


class ProjectCreate(EntityModel):
    """Schema for creating a project. Status and priority default from AppSettings."""
    name: str = Field(min_length=1)
    description: str = ""
    unit_id: str = ""
    status: Optional[ProjectStatus] = None
    priority: Optional[ProjectPriority] = None
    start_date: str = ""
    end_date: str = ""
    budget: float = 0
    assigned_users: List[str] = Field(default_factory=list)
    budget_codes: List[str] = Field(default_factory=list)
    created_by: Optional[str] = None

    @field_validator("assigned_users", "budget_codes", mode="before")
    @classmethod
    def dedupe_ids(cls, v):
        if v is None:
            return []
        return unique_ids(v)


class ProjectUpdate(UpdateModel):
    """Schema for updating a project. `spent` is derived and cannot be set."""
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    unit_id: Optional[str] = None
    status: Optional[ProjectStatus] = None
    priority: Optional[ProjectPriority] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    budget: Optional[float] = None
    assigned_users: Optional[List[str]] = None
    budget_codes: Optional[List[str]] = None

    @field_validator("assigned_users", "budget_codes", mode="before")
    @classmethod
    def dedupe_ids(cls, v):
        if v is None:
            return v
        return unique_ids(v)
