"""
Division and Unit models.

Divisions are the top-level organizational grouping; every unit belongs to
exactly one division and projects are filed under units.
"""
from typing import Optional

from pydantic import Field

from budget_tracker.models.base import EntityModel, UpdateModel, new_id, utc_now


class Division(EntityModel):
    id: str = Field(default_factory=new_id)
    name: str
    created_by: str = ""
    created_at: str = Field(default_factory=utc_now)


class DivisionCreate(EntityModel):
    name: str = Field(min_length=1)
    created_by: Optional[str] = None


class DivisionUpdate(UpdateModel):
    name: Optional[str] = Field(default=None, min_length=1)


class Unit(EntityModel):
    id: str = Field(default_factory=new_id)
    name: str
    division_id: str
    created_by: str = ""
    created_at: str = Field(default_factory=utc_now)


class UnitCreate(EntityModel):
    name: str = Field(min_length=1)
    division_id: str
    created_by: Optional[str] = None


class UnitUpdate(UpdateModel):
    name: Optional[str] = Field(default=None, min_length=1)
    division_id: Optional[str] = None
