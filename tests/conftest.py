import pytest

from budget_tracker.models import UserRole
from budget_tracker.persistence import MemoryAdapter
from tests.helpers import add_user, make_store


@pytest.fixture
def adapter():
    return MemoryAdapter()


@pytest.fixture
def store(adapter):
    return make_store(adapter)


@pytest.fixture
def team(store):
    """A super admin, an admin and two regular users."""
    return {
        "root": add_user(store, "Sarah Chen", UserRole.SUPER_ADMIN),
        "admin": add_user(store, "Adam Lee", UserRole.ADMIN),
        "alice": add_user(store, "Alice Tan"),
        "bob": add_user(store, "Bob Kumar"),
    }
