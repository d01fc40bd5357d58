"""
Database Tables Module

SQLModel table definitions used by the database persistence backend. Columns
mirror the entity models with snake_case names and UUID string keys. Blank
optional references are stored as NULL.

Foreign keys:
- budget_entries.project_id -> projects.id ON DELETE CASCADE
- budget_entries.budget_code_id -> budget_codes.id ON DELETE SET NULL
"""
from typing import Any, Dict, List, Optional

from sqlmodel import JSON, Column, Field, SQLModel


class UserRecord(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(primary_key=True)
    name: str = Field(nullable=False)
    email: str = Field(index=True, nullable=False)
    role: str = Field(default="user")  # "super_admin", "admin" or "user"
    initials: str = ""
    created_at: str = Field(nullable=False)


class DivisionRecord(SQLModel, table=True):
    __tablename__ = "divisions"

    id: str = Field(primary_key=True)
    name: str = Field(nullable=False)
    created_by: Optional[str] = None
    created_at: str = Field(nullable=False)


class UnitRecord(SQLModel, table=True):
    __tablename__ = "units"

    id: str = Field(primary_key=True)
    name: str = Field(nullable=False)
    division_id: Optional[str] = Field(default=None, foreign_key="divisions.id", ondelete="CASCADE")
    created_by: Optional[str] = None
    created_at: str = Field(nullable=False)


class ProjectRecord(SQLModel, table=True):
    __tablename__ = "projects"

    id: str = Field(primary_key=True)
    name: str = Field(nullable=False)
    description: str = ""
    unit_id: Optional[str] = Field(default=None, foreign_key="units.id", ondelete="SET NULL")

    # "planning", "active", "on_hold", "completed" or "cancelled"
    status: str = Field(default="planning")
    # "low", "medium" or "high"
    priority: str = Field(default="medium")

    start_date: Optional[str] = None
    end_date: Optional[str] = None
    budget: float = 0
    spent: float = 0

    # Id arrays stored as JSON for portability across SQLite, MySQL and Postgres
    assigned_users: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    budget_codes: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    created_by: Optional[str] = None
    created_at: str = Field(nullable=False)
    updated_at: str = Field(nullable=False)


class BudgetCodeRecord(SQLModel, table=True):
    __tablename__ = "budget_codes"

    id: str = Field(primary_key=True)
    code: str = Field(index=True, nullable=False)
    name: str = Field(nullable=False)
    description: str = ""
    budget: float = 0
    spent: float = 0
    is_active: bool = True
    created_by: Optional[str] = None
    created_at: str = Field(nullable=False)
    updated_at: str = Field(nullable=False)


class BudgetEntryRecord(SQLModel, table=True):
    __tablename__ = "budget_entries"

    id: str = Field(primary_key=True)
    project_id: str = Field(foreign_key="projects.id", ondelete="CASCADE")
    unit_id: Optional[str] = Field(default=None, foreign_key="units.id", ondelete="SET NULL")
    division_id: Optional[str] = Field(default=None, foreign_key="divisions.id", ondelete="SET NULL")
    budget_code_id: Optional[str] = Field(default=None, foreign_key="budget_codes.id", ondelete="SET NULL")
    description: str = ""
    amount: float = Field(nullable=False)
    type: str = Field(default="expense")  # "expense" or "income"
    category: str = ""
    date: Optional[str] = None
    created_by: Optional[str] = None
    created_at: str = Field(nullable=False)


class NotificationRecord(SQLModel, table=True):
    __tablename__ = "notifications"

    id: str = Field(primary_key=True)
    user_id: str = Field(foreign_key="users.id", ondelete="CASCADE")
    type: str = Field(nullable=False)
    title: str = Field(nullable=False)
    message: str = Field(nullable=False)
    data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    read: bool = False
    created_at: str = Field(nullable=False)
    action_url: Optional[str] = None


class AppSettingsRecord(SQLModel, table=True):
    """Single-row table holding the AppSettings document."""
    __tablename__ = "app_settings"

    id: int = Field(default=1, primary_key=True)
    data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
