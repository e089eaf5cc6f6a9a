"""
Admin API endpoints.

All endpoints require a bearer token belonging to a user with the admin role.

Submodules:
    - templates: Question template management
    - tests: Test creation, editing and removal
    - groups: Groups and their membership
"""
from fastapi import APIRouter, Depends

from app.core.auth import require_admin

from . import groups, templates, tests

# Create the main admin router
router = APIRouter(dependencies=[Depends(require_admin)])

router.include_router(
    templates.router,
    prefix="/templates",
    tags=["Admin - Templates"],
)

router.include_router(
    tests.router,
    prefix="/tests",
    tags=["Admin - Tests"],
)

router.include_router(
    groups.router,
    prefix="/groups",
    tags=["Admin - Groups"],
)

__all__ = ["router"]
