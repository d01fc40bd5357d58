"""
Budget Code Endpoints Module

Admins create, edit and activate/deactivate budget codes; deleting one is
reserved for super admins. Codes are unique ("1-2345" style) across the store.
"""
from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException

from budget_tracker.api import deps
from budget_tracker.models.budget import BudgetCode, BudgetCodeCreate, BudgetCodeUpdate
from budget_tracker.models.user import User
from budget_tracker.services.store import EntityStore
from budget_tracker.services.validation import validate_budget_code_fields

router = APIRouter()


def _ensure_code_free(store: EntityStore, code: str, code_id: str = "") -> None:
    existing = store.find_budget_code_by_code(code)
    if existing and existing.id != code_id:
        raise HTTPException(status_code=400, detail=f"Budget code '{code}' already exists")


@router.get("", response_model=List[BudgetCode])
def list_budget_codes(
    active_only: bool = False,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    return store.list_budget_codes(active_only)


@router.get("/{code_id}", response_model=BudgetCode)
def read_budget_code(
    code_id: str,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    code = store.get_budget_code(code_id)
    if not code:
        raise HTTPException(status_code=404, detail="Budget code not found")
    return code


@router.post("", response_model=BudgetCode)
def create_budget_code(
    code_in: BudgetCodeCreate,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """
    Create a budget code.

    Raises:
        HTTPException 400: If the code is already taken or the budget is out of range
        HTTPException 403: If the caller is not an admin
    """
    _ensure_code_free(store, code_in.code)
    validate_budget_code_fields(code_in.model_dump(), store.get_settings())
    return store.create_budget_code(code_in, actor_id=current_user.id)


@router.patch("/{code_id}", response_model=BudgetCode)
def update_budget_code(
    code_id: str,
    code_in: BudgetCodeUpdate,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """
    Update a budget code. A changed allocation re-checks the alert threshold.
    """
    if code_in.code:
        _ensure_code_free(store, code_in.code, code_id)
    validate_budget_code_fields(code_in.changes(), store.get_settings())
    code = store.update_budget_code(code_id, code_in, actor_id=current_user.id)
    if not code:
        raise HTTPException(status_code=404, detail="Budget code not found")
    return code


@router.post("/{code_id}/toggle", response_model=BudgetCode)
def toggle_budget_code(
    code_id: str,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """Flip a budget code between active and inactive."""
    code = store.toggle_budget_code_status(code_id, actor_id=current_user.id)
    if not code:
        raise HTTPException(status_code=404, detail="Budget code not found")
    return code


@router.delete("/{code_id}")
def delete_budget_code(
    code_id: str,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """
    Delete a budget code.

    It is removed from every project's code list; entries that charged it stay
    with no budget code.
    """
    if not store.delete_budget_code(code_id, actor_id=current_user.id):
        raise HTTPException(status_code=404, detail="Budget code not found")
    return {"status": "success", "detail": "Budget code deleted"}
