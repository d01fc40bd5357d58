from .events import EventBus
from .notifications import NotificationDispatcher
from .store import EntityStore

__all__ = ["EntityStore", "EventBus", "NotificationDispatcher"]
