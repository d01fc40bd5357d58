from typing import Any

from fastapi import APIRouter, Depends

from budget_tracker.api import deps
from budget_tracker.core.config import Settings
from budget_tracker.services.store import EntityStore

router = APIRouter()


@router.get("", response_model=dict[str, Any])
def health_check(
    store: EntityStore = Depends(deps.get_store),
    config: Settings = Depends(deps.get_config),
) -> Any:
    """
    Health check endpoint.

    Reports how many background writes have failed without clearing them;
    the failures themselves are read and cleared under /settings.
    """
    failed = len(store.peek_persistence_errors())
    return {
        "status": "degraded" if failed else "ok",
        "storage": config.STORAGE_BACKEND,
        "persistence_errors": failed,
    }
