"""
Division and Unit Endpoints

Admins create and rename divisions and units; only super admins delete them.
Deleting a division removes its units and unlinks the projects and entries
filed under them.
"""
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException

from budget_tracker.api import deps
from budget_tracker.models.organization import (
    Division,
    DivisionCreate,
    DivisionUpdate,
    Unit,
    UnitCreate,
    UnitUpdate,
)
from budget_tracker.models.user import User
from budget_tracker.services.store import EntityStore

divisions_router = APIRouter()
units_router = APIRouter()


@divisions_router.get("", response_model=List[Division])
def list_divisions(
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    return store.list_divisions()


@divisions_router.get("/{division_id}", response_model=Division)
def read_division(
    division_id: str,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    division = store.get_division(division_id)
    if not division:
        raise HTTPException(status_code=404, detail="Division not found")
    return division


@divisions_router.post("", response_model=Division)
def create_division(
    division_in: DivisionCreate,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    return store.create_division(division_in, actor_id=current_user.id)


@divisions_router.patch("/{division_id}", response_model=Division)
def update_division(
    division_id: str,
    division_in: DivisionUpdate,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    division = store.update_division(division_id, division_in, actor_id=current_user.id)
    if not division:
        raise HTTPException(status_code=404, detail="Division not found")
    return division


@divisions_router.delete("/{division_id}")
def delete_division(
    division_id: str,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    if not store.delete_division(division_id, actor_id=current_user.id):
        raise HTTPException(status_code=404, detail="Division not found")
    return {"status": "success", "detail": "Division deleted"}


@units_router.get("", response_model=List[Unit])
def list_units(
    division_id: Optional[str] = None,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """List units, optionally only those of one division."""
    return store.list_units(division_id)


@units_router.get("/{unit_id}", response_model=Unit)
def read_unit(
    unit_id: str,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    unit = store.get_unit(unit_id)
    if not unit:
        raise HTTPException(status_code=404, detail="Unit not found")
    return unit


@units_router.post("", response_model=Unit)
def create_unit(
    unit_in: UnitCreate,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """
    Create a unit inside an existing division.

    Raises:
        HTTPException 400: If the division doesn't exist
    """
    if not any(d.id == unit_in.division_id for d in store.list_divisions()):
        raise HTTPException(status_code=400, detail="Division does not exist")
    return store.create_unit(unit_in, actor_id=current_user.id)


@units_router.patch("/{unit_id}", response_model=Unit)
def update_unit(
    unit_id: str,
    unit_in: UnitUpdate,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    if unit_in.division_id and not any(d.id == unit_in.division_id for d in store.list_divisions()):
        raise HTTPException(status_code=400, detail="Division does not exist")
    unit = store.update_unit(unit_id, unit_in, actor_id=current_user.id)
    if not unit:
        raise HTTPException(status_code=404, detail="Unit not found")
    return unit


@units_router.delete("/{unit_id}")
def delete_unit(
    unit_id: str,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    if not store.delete_unit(unit_id, actor_id=current_user.id):
        raise HTTPException(status_code=404, detail="Unit not found")
    return {"status": "success", "detail": "Unit deleted"}
