"""
Budget Models Module

This module defines two models:
1. BudgetCode: a named allocation bucket that entries from any project may charge
2. BudgetEntry: a single income or expense line recorded against a project
"""
from enum import Enum
from typing import Optional

from pydantic import Field

from budget_tracker.models.base import EntityModel, UpdateModel, new_id, utc_now

# e.g. "1-2345"
BUDGET_CODE_PATTERN = r"^\d+-\d+$"


class EntryType(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"


class BudgetCode(EntityModel):
    """
    Budget code with an allocation and the spend charged against it.

    `spent` is the sum of the expense entries that reference the code and is
    maintained by the store; it never goes below zero.
    """
    id: str = Field(default_factory=new_id)
    code: str
    name: str
    description: str = ""
    budget: float = 0
    spent: float = 0
    is_active: bool = True
    created_by: str = ""
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)

    @property
    def usage_percentage(self) -> float:
        return self.spent / self.budget * 100 if self.budget > 0 else 0.0

    @property
    def remaining(self) -> float:
        return self.budget - self.spent


class BudgetCodeCreate(EntityModel):
    code: str = Field(pattern=BUDGET_CODE_PATTERN)
    name: str = Field(min_length=1)
    description: str = ""
    budget: float = Field(default=0, ge=0)
    is_active: bool = True
    created_by: Optional[str] = None


class BudgetCodeUpdate(UpdateModel):
    code: Optional[str] = Field(default=None, pattern=BUDGET_CODE_PATTERN)
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    budget: Optional[float] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class BudgetEntry(EntityModel):
    """
    Budget entry model.

    Attributes:
        id: UUID assigned on creation
        project_id: Project the entry belongs to
        unit_id: Unit of the project at creation time (denormalized)
        division_id: Division of that unit at creation time (denormalized)
        budget_code_id: Budget code charged, empty when none
        description: What the money was for
        amount: Positive amount
        type: "expense" entries count towards spend, "income" entries do not
        category: Free-form category, suggested values come from AppSettings
        date: Date of the transaction (YYYY-MM-DD)
        created_by: Id of the user who recorded the entry
        created_at: ISO timestamp of creation, never changed
    """
    id: str = Field(default_factory=new_id)
    project_id: str
    unit_id: str = ""
    division_id: str = ""
    budget_code_id: str = ""
    description: str = ""
    amount: float
    type: EntryType = EntryType.EXPENSE
    category: str = ""
    date: str = ""
    created_by: str = ""
    created_at: str = Field(default_factory=utc_now)

    @property
    def is_expense(self) -> bool:
        return self.type == EntryType.EXPENSE


class BudgetEntryCreate(EntityModel):
    project_id: str
    unit_id: Optional[str] = None
    division_id: Optional[str] = None
    budget_code_id: str = ""
    description: str = ""
    amount: float = Field(gt=0)
    type: EntryType = EntryType.EXPENSE
    category: str = ""
    date: str = ""
    created_by: Optional[str] = None


class BudgetEntryUpdate(UpdateModel):
    project_id: Optional[str] = None
    unit_id: Optional[str] = None
    division_id: Optional[str] = None
    budget_code_id: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[float] = Field(default=None, gt=0)
    type: Optional[EntryType] = None
    category: Optional[str] = None
    date: Optional[str] = None
