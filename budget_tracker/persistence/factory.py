from budget_tracker.core.config import Settings
from budget_tracker.persistence.base import PersistenceAdapter
from budget_tracker.persistence.local import JsonFileAdapter
from budget_tracker.persistence.memory import MemoryAdapter


def build_adapter(config: Settings) -> PersistenceAdapter:
    backend = config.STORAGE_BACKEND.strip().lower()
    if backend == "database":
        from budget_tracker.db.session import create_db_engine
        from budget_tracker.persistence.database import DatabaseAdapter

        return DatabaseAdapter(create_db_engine(config))
    if backend == "memory":
        return MemoryAdapter()
    return JsonFileAdapter(config.DATA_DIR)
