from .base import ALL_KEYS, COLLECTION_KEYS, WRITE_ORDER, PersistenceAdapter
from .debounce import Debouncer
from .factory import build_adapter
from .local import JsonFileAdapter
from .memory import MemoryAdapter

__all__ = [
    "ALL_KEYS", "COLLECTION_KEYS", "PersistenceAdapter",
    "Debouncer", "build_adapter", "JsonFileAdapter", "MemoryAdapter",
]
