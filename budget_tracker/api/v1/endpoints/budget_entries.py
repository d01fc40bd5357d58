"""
Budget Entry Endpoints Module

Entries are recorded against a project by admins and by the project's members.
Every change to an expense entry is reflected in the spend of its project and
budget code before the response is returned.
"""
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException

from budget_tracker.api import deps
from budget_tracker.models.budget import BudgetEntry, BudgetEntryCreate, BudgetEntryUpdate
from budget_tracker.models.user import User
from budget_tracker.services.store import EntityStore
from budget_tracker.services.validation import validate_entry_fields

router = APIRouter()


@router.get("", response_model=List[BudgetEntry])
def list_budget_entries(
    project_id: Optional[str] = None,
    budget_code_id: Optional[str] = None,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """
    Retrieve budget entries.

    Args:
        project_id: Only entries of this project
        budget_code_id: Only entries charging this budget code
    """
    return store.list_budget_entries(project_id, budget_code_id)


@router.get("/{entry_id}", response_model=BudgetEntry)
def read_budget_entry(
    entry_id: str,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    entry = store.get_budget_entry(entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Budget entry not found")
    return entry


@router.post("", response_model=BudgetEntry)
def create_budget_entry(
    entry_in: BudgetEntryCreate,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """
    Record a budget entry.

    Unit and division default to the project's. The project's members are
    notified and the budget code is checked against the alert threshold.

    Raises:
        HTTPException 404: If the project doesn't exist
        HTTPException 400: If the amount or date is invalid
    """
    validate_entry_fields(entry_in.model_dump())
    if not entry_in.created_by:
        entry_in.created_by = current_user.id
    entry = store.create_budget_entry(entry_in, actor_id=current_user.id)
    if not entry:
        raise HTTPException(status_code=404, detail="Project not found")
    return entry


@router.patch("/{entry_id}", response_model=BudgetEntry)
def update_budget_entry(
    entry_id: str,
    entry_in: BudgetEntryUpdate,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    validate_entry_fields(entry_in.changes())
    if entry_in.project_id and store.get_project(entry_in.project_id) is None:
        raise HTTPException(status_code=404, detail="Project not found")
    entry = store.update_budget_entry(entry_id, entry_in, actor_id=current_user.id)
    if not entry:
        raise HTTPException(status_code=404, detail="Budget entry not found")
    return entry


@router.delete("/{entry_id}")
def delete_budget_entry(
    entry_id: str,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    if not store.delete_budget_entry(entry_id, actor_id=current_user.id):
        raise HTTPException(status_code=404, detail="Budget entry not found")
    return {"status": "success", "detail": "Budget entry deleted"}
