import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, NamedTuple

__all__ = ["Event", "EventBus", "ENTITY_CREATED", "ENTITY_UPDATED", "ENTITY_DELETED", "NOTIFICATION_CREATED"]

ENTITY_CREATED = "entity.created"
ENTITY_UPDATED = "entity.updated"
ENTITY_DELETED = "entity.deleted"
NOTIFICATION_CREATED = "notification.created"

logger = logging.getLogger(__name__)


class Event(NamedTuple):
    name: str
    ts: str
    payload: Dict[str, Any]


Handler = Callable[[Event], Any]


class EventBus:
    """Synchronous publish/subscribe used by the store to announce mutations."""

    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        handlers = self._subscribers.get(name, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, name: str, payload: Dict[str, Any]) -> List[Any]:
        """
        Call every handler of `name` in subscription order.

        A failing handler is logged and skipped; the change it was told about
        has already been applied.
        """
        handlers = self._subscribers.get(name)
        if not handlers:
            return []

        event = Event(name=name, ts=datetime.now(timezone.utc).isoformat(), payload=payload)
        results = []
        for handler in list(handlers):
            try:
                results.append(handler(event))
            except Exception:
                logger.exception("Handler %r for '%s' failed", handler, name)
        return results
