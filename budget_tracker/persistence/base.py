from __future__ import annotations

from typing import Any, Protocol

USERS = "users"
DIVISIONS = "divisions"
UNITS = "units"
PROJECTS = "projects"
BUDGET_ENTRIES = "budget_entries"
BUDGET_CODES = "budget_codes"
NOTIFICATIONS = "notifications"
SETTINGS = "settings"

# Collection keys, each persisted as a JSON array of camelCase records
COLLECTION_KEYS = (USERS, DIVISIONS, UNITS, PROJECTS, BUDGET_ENTRIES, BUDGET_CODES, NOTIFICATIONS)
ALL_KEYS = COLLECTION_KEYS + (SETTINGS,)

# Save order: a collection is written after every collection its rows reference
WRITE_ORDER = (USERS, DIVISIONS, UNITS, BUDGET_CODES, PROJECTS, BUDGET_ENTRIES, NOTIFICATIONS, SETTINGS)


class PersistenceAdapter(Protocol):
    """
    Durable key/value storage for the entity store.

    `save` may block; the store only ever calls it through the debouncer.
    Implementations raise PersistenceError on failure.
    """

    def load(self, key: str, default: Any = None) -> Any: ...

    def save(self, key: str, value: Any) -> None: ...
