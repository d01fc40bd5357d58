from typing import Any

from fastapi import APIRouter, Depends

from budget_tracker.api import deps
from budget_tracker.models.settings import AppSettings, AppSettingsUpdate
from budget_tracker.models.user import User, UserRole
from budget_tracker.services.store import EntityStore

router = APIRouter()


@router.get("", response_model=AppSettings)
def read_settings(
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    return store.get_settings()


@router.patch("", response_model=AppSettings)
def update_settings(
    settings_in: AppSettingsUpdate,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """
    Update application settings (currency, alert threshold, defaults...).

    Only super admins can change settings.
    """
    return store.update_settings(settings_in, actor_id=current_user.id)


@router.post("/rebuild-rollups")
def rebuild_rollups(
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.RoleChecker([UserRole.SUPER_ADMIN])),
) -> Any:
    """Recompute the spend of every project and budget code from the stored entries."""
    store.rebuild_rollups(actor_id=current_user.id)
    return {"status": "success", "detail": "Spend figures rebuilt"}


@router.get("/persistence-errors")
def read_persistence_errors(
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.RoleChecker([UserRole.SUPER_ADMIN, UserRole.ADMIN])),
) -> Any:
    """List the background write failures still queued, oldest first."""
    return [error.to_dict() for error in store.peek_persistence_errors()]


@router.post("/persistence-errors/drain")
def drain_persistence_errors(
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.RoleChecker([UserRole.SUPER_ADMIN])),
) -> Any:
    """Return the queued write failures and clear the queue."""
    return [error.to_dict() for error in store.drain_persistence_errors()]
