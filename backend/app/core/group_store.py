"""
Group persistence: membership and test assignments.
"""

import logging
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.datetime_utils import to_utc
from app.core.exceptions import GroupNotFoundError, TestNotFoundError, UserNotFoundError
from app.core.test_store import test_exists
from app.models.models import Group, GroupMember, GroupTest, User

logger = logging.getLogger(__name__)


async def create_group(
    db: AsyncSession, name: str, description: str = "", created_by: Optional[int] = None
) -> Group:
    group = Group(name=name, description=description, created_by=created_by)
    db.add(group)
    await db.commit()
    await db.refresh(group)
    logger.info(f"Created group {group.id}")
    return group


async def get_group(db: AsyncSession, group_id: int) -> Optional[Group]:
    """Fetch a group with members and test assignments, or None."""
    result = await db.execute(
        select(Group)
        .where(Group.id == group_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_groups(
    db: AsyncSession, search: Optional[str] = None
) -> Sequence[Group]:
    """List groups by name, optionally filtered by a case-insensitive name prefix."""
    stmt = select(Group)
    if search:
        stmt = stmt.where(
            func.lower(Group.name).startswith(search.strip().lower(), autoescape=True)
        )
    result = await db.execute(
        stmt.order_by(Group.name, Group.id).execution_options(populate_existing=True)
    )
    return result.scalars().all()


async def update_group(
    db: AsyncSession,
    group_id: int,
    name: Optional[str] = None,
    description: Optional[str] = None,
) -> Optional[Group]:
    """Rename a group or change its description. Returns None if it does not exist."""
    group = await get_group(db, group_id)
    if group is None:
        return None

    if name is not None:
        group.name = name
    if description is not None:
        group.description = description
    await db.commit()
    await db.refresh(group)
    return group


async def delete_group(db: AsyncSession, group_id: int) -> bool:
    """
    Delete a group with its memberships and test assignments.

    The tests themselves are kept.

    Returns:
        False if the group does not exist
    """
    group = await get_group(db, group_id)
    if group is None:
        return False

    await db.delete(group)
    await db.commit()
    logger.info(f"Deleted group {group_id}")
    return True


async def _require_group(db: AsyncSession, group_id: int) -> Group:
    group = await get_group(db, group_id)
    if group is None:
        raise GroupNotFoundError()
    return group


async def is_member(db: AsyncSession, group_id: int, user_id: int) -> bool:
    result = await db.execute(
        select(GroupMember.user_id).where(
            GroupMember.group_id == group_id, GroupMember.user_id == user_id
        )
    )
    return result.first() is not None


async def add_member(db: AsyncSession, group_id: int, user_id: int) -> Group:
    """
    Add a user to a group. Adding an existing member is a no-op.

    Raises:
        GroupNotFoundError: If the group does not exist
        UserNotFoundError: If the user does not exist
    """
    group = await _require_group(db, group_id)
    if await db.get(User, user_id) is None:
        raise UserNotFoundError()

    if not await is_member(db, group_id, user_id):
        db.add(GroupMember(group_id=group_id, user_id=user_id))
        await db.commit()
        logger.info(f"Added user {user_id} to group {group_id}")

    await db.refresh(group)
    return group


async def remove_member(db: AsyncSession, group_id: int, user_id: int) -> Group:
    """Remove a user from a group. Removing a non-member is a no-op."""
    group = await _require_group(db, group_id)
    result = await db.execute(
        delete(GroupMember).where(
            GroupMember.group_id == group_id, GroupMember.user_id == user_id
        )
    )
    await db.commit()
    if result.rowcount:
        logger.info(f"Removed user {user_id} from group {group_id}")

    await db.refresh(group)
    return group


async def get_groups_for_user(db: AsyncSession, user_id: int) -> Sequence[Group]:
    result = await db.execute(
        select(Group)
        .join(GroupMember, GroupMember.group_id == Group.id)
        .where(GroupMember.user_id == user_id)
        .order_by(Group.name, Group.id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().all()


async def assign_test_to_group(
    db: AsyncSession,
    group_id: int,
    test_id: int,
    due_at: Optional[datetime] = None,
) -> GroupTest:
    """
    Assign a test to a group.

    An existing assignment for the same pair is replaced, so the
    assigned_at and due_at reflect the latest call.

    Raises:
        GroupNotFoundError: If the group does not exist
        TestNotFoundError: If the test does not exist
    """
    await _require_group(db, group_id)
    if not await test_exists(db, test_id):
        raise TestNotFoundError()

    await db.execute(
        delete(GroupTest).where(
            GroupTest.group_id == group_id, GroupTest.test_id == test_id
        )
    )
    assignment = GroupTest(
        group_id=group_id,
        test_id=test_id,
        due_at=to_utc(due_at) if due_at else None,
    )
    db.add(assignment)
    await db.commit()
    await db.refresh(assignment)

    logger.info(f"Assigned test {test_id} to group {group_id}")
    return assignment


async def unassign_test_from_group(
    db: AsyncSession, group_id: int, test_id: int
) -> bool:
    """
    Remove a test assignment, keeping the test.

    Returns:
        False if the test was not assigned to the group

    Raises:
        GroupNotFoundError: If the group does not exist
    """
    await _require_group(db, group_id)
    result = await db.execute(
        delete(GroupTest).where(
            GroupTest.group_id == group_id, GroupTest.test_id == test_id
        )
    )
    await db.commit()
    if result.rowcount:
        logger.info(f"Unassigned test {test_id} from group {group_id}")
    return bool(result.rowcount)

