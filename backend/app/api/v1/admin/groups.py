"""
Admin endpoints for groups, membership and test assignment.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import group_store
from app.core.auth import require_admin
from app.core.db_error_handling import handle_db_error
from app.core.error_responses import ErrorMessages, raise_not_found
from app.models import get_db, Group, User
from app.schemas.groups import (
    GroupCreate,
    GroupResponse,
    GroupTestAssign,
    GroupUpdate,
)

router = APIRouter()


async def _group_response(db: AsyncSession, group_id: int) -> GroupResponse:
    group: Optional[Group] = await group_store.get_group(db, group_id)
    if group is None:
        raise_not_found(ErrorMessages.GROUP_NOT_FOUND)
    return GroupResponse.from_model(group)


@router.post("", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    payload: GroupCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    async with handle_db_error(db, "create group"):
        group = await group_store.create_group(
            db, payload.name, payload.description, created_by=admin.id
        )
    return GroupResponse.from_model(group)


@router.get("", response_model=List[GroupResponse])
async def list_groups(
    search: Optional[str] = Query(
        None, max_length=200, description="Case-insensitive name prefix"
    ),
    db: AsyncSession = Depends(get_db),
):
    groups = await group_store.list_groups(db, search=search)
    return [GroupResponse.from_model(g) for g in groups]


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(group_id: int, db: AsyncSession = Depends(get_db)):
    """Get a group with its member ids and test assignments."""
    return await _group_response(db, group_id)


@router.patch("/{group_id}", response_model=GroupResponse)
async def update_group(
    group_id: int,
    payload: GroupUpdate,
    db: AsyncSession = Depends(get_db),
):
    async with handle_db_error(db, "update group"):
        group = await group_store.update_group(
            db, group_id, name=payload.name, description=payload.description
        )
    if group is None:
        raise_not_found(ErrorMessages.GROUP_NOT_FOUND)
    return GroupResponse.from_model(group)


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_group(group_id: int, db: AsyncSession = Depends(get_db)):
    """
    Delete a group. Tests assigned to it are kept.

    Raises:
        HTTPException: 404 if the group does not exist
    """
    async with handle_db_error(db, "delete group"):
        deleted = await group_store.delete_group(db, group_id)
    if not deleted:
        raise_not_found(ErrorMessages.GROUP_NOT_FOUND)


@router.post("/{group_id}/members/{user_id}", response_model=GroupResponse)
async def add_member(
    group_id: int,
    user_id: int,
    db: AsyncSession = Depends(get_db),
):
    """
    Add a user to a group. Adding an existing member changes nothing.

    Raises:
        HTTPException: 404 if the group or user does not exist
    """
    async with handle_db_error(db, "add group member"):
        group = await group_store.add_member(db, group_id, user_id)
    return GroupResponse.from_model(group)


@router.delete("/{group_id}/members/{user_id}", response_model=GroupResponse)
async def remove_member(
    group_id: int,
    user_id: int,
    db: AsyncSession = Depends(get_db),
):
    async with handle_db_error(db, "remove group member"):
        group = await group_store.remove_member(db, group_id, user_id)
    return GroupResponse.from_model(group)


@router.post("/{group_id}/tests", response_model=GroupResponse)
async def assign_test(
    group_id: int,
    payload: GroupTestAssign,
    db: AsyncSession = Depends(get_db),
):
    """
    Assign an existing test to a group.

    Assigning the same test again replaces the earlier assignment and its
    due date.

    Raises:
        HTTPException: 404 if the group or test does not exist
    """
    async with handle_db_error(db, "assign test"):
        await group_store.assign_test_to_group(
            db, group_id, payload.test_id, due_at=payload.due_at
        )
    return await _group_response(db, group_id)


@router.delete("/{group_id}/tests/{test_id}", response_model=GroupResponse)
async def unassign_test(
    group_id: int,
    test_id: int,
    db: AsyncSession = Depends(get_db),
):
    """
    Remove a test from a group without deleting the test or its responses.

    Unassigning a test that is not assigned changes nothing.
    """
    async with handle_db_error(db, "unassign test"):
        await group_store.unassign_test_from_group(db, group_id, test_id)
    return await _group_response(db, group_id)
