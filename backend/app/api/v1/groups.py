"""
Group endpoints for authenticated users.

Users browse groups and join or leave them themselves. Member lists stay
with the admin endpoints.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import group_store
from app.core.auth import get_current_user
from app.core.db_error_handling import handle_db_error
from app.core.error_responses import ErrorMessages, raise_not_found
from app.models import get_db, User
from app.schemas.groups import GroupMembershipResponse, GroupSummaryResponse

router = APIRouter()


@router.get("", response_model=List[GroupSummaryResponse])
async def list_groups(
    search: Optional[str] = Query(
        None, max_length=200, description="Case-insensitive name prefix"
    ),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List all groups, so users can find one to join."""
    groups = await group_store.list_groups(db, search=search)
    return [GroupSummaryResponse.from_model(g, current_user.id) for g in groups]


@router.get("/mine", response_model=List[GroupSummaryResponse])
async def get_my_groups(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the groups the current user belongs to."""
    groups = await group_store.get_groups_for_user(db, current_user.id)
    return [GroupSummaryResponse.from_model(g, current_user.id) for g in groups]


@router.get("/{group_id}", response_model=GroupSummaryResponse)
async def get_group(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    group = await group_store.get_group(db, group_id)
    if group is None:
        raise_not_found(ErrorMessages.GROUP_NOT_FOUND)
    return GroupSummaryResponse.from_model(group, current_user.id)


@router.post("/{group_id}/join", response_model=GroupMembershipResponse)
async def join_group(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Join a group. Joining a group twice changes nothing.

    Raises:
        HTTPException: 404 if the group does not exist
    """
    async with handle_db_error(db, "join group"):
        was_member = await group_store.is_member(db, group_id, current_user.id)
        await group_store.add_member(db, group_id, current_user.id)
    return GroupMembershipResponse(
        group_id=group_id,
        is_member=True,
        changed=not was_member,
        message="Already a member" if was_member else "Joined group",
    )


@router.post("/{group_id}/leave", response_model=GroupMembershipResponse)
async def leave_group(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Leave a group. Leaving a group you are not in changes nothing.

    Raises:
        HTTPException: 404 if the group does not exist
    """
    async with handle_db_error(db, "leave group"):
        was_member = await group_store.is_member(db, group_id, current_user.id)
        await group_store.remove_member(db, group_id, current_user.id)
    return GroupMembershipResponse(
        group_id=group_id,
        is_member=False,
        changed=was_member,
        message="Left group" if was_member else "You are not a member",
    )
