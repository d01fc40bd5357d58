"""
Project Endpoints Module

This module provides CRUD endpoints for projects. Every user can see and
create projects; updating is limited to super admins, the admin who created the
project and its assigned users, and deleting to super admins and the creating
admin. The store enforces these rules and the handlers map a refusal to 403.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from budget_tracker.api import deps
from budget_tracker.models.project import Project, ProjectCreate, ProjectUpdate
from budget_tracker.models.user import User
from budget_tracker.services.store import EntityStore
from budget_tracker.services.validation import validate_project_fields

router = APIRouter()


@router.get("", response_model=List[Project])
def list_projects(
    unit_id: Optional[str] = None,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Retrieve projects.

    Args:
        unit_id: Only return projects filed under this unit
        store: Entity store
        current_user: Currently authenticated user

    Returns:
        List[Project]: Projects with their current spend
    """
    return store.list_projects(unit_id)


@router.get("/{project_id}", response_model=Project)
def read_project(
    project_id: str,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
):
    project = store.get_project(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.post("", response_model=Project)
def create_project(
    project_in: ProjectCreate,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Create a new project.

    The creator defaults to the current user; status and priority default to
    the configured AppSettings values. All other users are notified and
    assignees receive an assignment notice.

    Raises:
        HTTPException 400: If the name, budget or date range is invalid
    """
    validate_project_fields(project_in.model_dump(), store.get_settings())
    if not project_in.created_by:
        project_in.created_by = current_user.id
    return store.create_project(project_in, actor_id=current_user.id)


@router.patch("/{project_id}", response_model=Project)
def update_project(
    project_id: str,
    project_update: ProjectUpdate,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Update an existing project.

    Only the provided fields change; `spent` is maintained from budget entries
    and cannot be set. A budget alert goes out when the project has reached
    the alert threshold after the change.

    Raises:
        HTTPException 404: If the project doesn't exist
        HTTPException 403: If the user may not edit the project
        HTTPException 400: If the merged project data is invalid
    """
    project = store.get_project(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    validate_project_fields({**project.model_dump(), **project_update.changes()}, store.get_settings())
    return store.update_project(project_id, project_update, actor_id=current_user.id)


@router.delete("/{project_id}")
def delete_project(
    project_id: str,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Delete a project together with all of its budget entries.

    Returns:
        dict: Success message
    """
    if not store.delete_project(project_id, actor_id=current_user.id):
        raise HTTPException(status_code=404, detail="Project not found")
    return {"status": "success", "detail": "Project deleted"}
