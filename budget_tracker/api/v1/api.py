from fastapi import APIRouter

from budget_tracker.api.v1.endpoints import (
    budget_codes, budget_entries, health, notifications, organization, projects, settings, users
)

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(users.router, prefix="/users", tags=["users"])

# Organization structure
api_router.include_router(organization.divisions_router, prefix="/divisions", tags=["divisions"])
api_router.include_router(organization.units_router, prefix="/units", tags=["units"])

# Budget tracking
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(budget_codes.router, prefix="/budget-codes", tags=["budget-codes"])
api_router.include_router(budget_entries.router, prefix="/budget-entries", tags=["budget-entries"])

api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
