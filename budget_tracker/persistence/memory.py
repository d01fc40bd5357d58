import copy
from typing import Any, Dict, List, Tuple


class MemoryAdapter:
    """In-process storage. Nothing survives a restart; used for tests and demos."""

    def __init__(self, initial: Dict[str, Any] = None):
        self.data: Dict[str, Any] = copy.deepcopy(initial or {})
        self.writes: List[Tuple[str, Any]] = []

    def load(self, key: str, default: Any = None) -> Any:
        if key not in self.data:
            return default
        return copy.deepcopy(self.data[key])

    def save(self, key: str, value: Any) -> None:
        self.data[key] = copy.deepcopy(value)
        self.writes.append((key, value))
