"""
Domain Exceptions Module

Error taxonomy shared by the store, the persistence adapters and the API layer.
Expected domain conditions (unknown ids, empty filters) do not raise unless
strict lookups are enabled; programmer errors such as invalid enum values fail
loudly through pydantic.
"""
from enum import Enum
from typing import List, Optional


class BudgetTrackerError(Exception):
    """Base class for all budget tracker errors."""


class EntityNotFound(BudgetTrackerError):
    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")


class ValidationError(BudgetTrackerError):
    """Input rejected at the public edge of the core."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class PermissionDenied(BudgetTrackerError):
    def __init__(self, action: str, role: Optional[str] = None):
        self.action = action
        self.role = role
        super().__init__(f"Role '{role}' is not allowed to {action}")


class PersistenceErrorCategory(str, Enum):
    NETWORK = "network"
    AUTH = "auth"
    SCHEMA = "schema"


class PersistenceError(BudgetTrackerError):
    """
    Raised by persistence adapters.

    Never fatal for in-memory state: the store logs it and keeps it for the
    caller to retry or report.
    """

    def __init__(
        self,
        message: str,
        category: PersistenceErrorCategory = PersistenceErrorCategory.NETWORK,
        key: Optional[str] = None,
    ):
        self.category = PersistenceErrorCategory(category)
        self.key = key
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"key": self.key, "category": self.category.value, "detail": str(self)}
