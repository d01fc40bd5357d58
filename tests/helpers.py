from budget_tracker.core.config import Settings
from budget_tracker.core.exceptions import PersistenceError, PersistenceErrorCategory
from budget_tracker.models import (
    BudgetCodeCreate,
    BudgetEntryCreate,
    EntryType,
    ProjectCreate,
    UserCreate,
    UserRole,
)
from budget_tracker.persistence import MemoryAdapter
from budget_tracker.services.store import EntityStore


class FailingAdapter(MemoryAdapter):
    """Refuses every save, or only the first `failures` of them."""

    def __init__(self, failures=None):
        super().__init__()
        self.failures = failures

    def save(self, key, value):
        if self.failures is None or self.failures > 0:
            if self.failures is not None:
                self.failures -= 1
            raise PersistenceError("connection refused", PersistenceErrorCategory.NETWORK)
        super().save(key, value)


def make_config(**overrides):
    values = {
        "STORAGE_BACKEND": "memory",
        "PERSIST_DEBOUNCE_SECONDS": 0,
        "SECRET_KEY": "test-secret",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_store(adapter=None, **overrides):
    store = EntityStore(adapter if adapter is not None else MemoryAdapter(), make_config(**overrides))
    store.load()
    return store


def add_user(store, name, role=UserRole.USER):
    email = name.lower().replace(" ", ".") + "@example.com"
    return store.create_user(UserCreate(name=name, email=email, role=role))


def add_project(store, name="Website Redesign", budget=500.0, **fields):
    return store.create_project(ProjectCreate(name=name, budget=budget, **fields))


def add_code(store, code="1-1000", budget=1000.0, name="Operations"):
    return store.create_budget_code(BudgetCodeCreate(code=code, name=name, budget=budget))


def add_entry(store, project_id, amount, type=EntryType.EXPENSE, **fields):
    return store.create_budget_entry(
        BudgetEntryCreate(project_id=project_id, amount=amount, type=type, **fields)
    )


def of_type(notifications, kind):
    return [n for n in notifications if n.type == kind]
