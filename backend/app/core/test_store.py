"""
Test persistence: time-windowed survey instances built from templates.

A test's template reference never changes after creation. The window
invariant (ends_at after starts_at) is checked here before every write and
again by a database CHECK constraint.
"""

import logging
from typing import Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.datetime_utils import is_window_valid, to_utc
from app.core.exceptions import (
    GroupNotFoundError,
    InvalidTestWindowError,
    TemplateNotFoundError,
)
from app.models.models import Group, GroupTest, Template, Test
from app.schemas.tests import TestCreate, TestUpdate

logger = logging.getLogger(__name__)

_PATCHABLE_FIELDS = ("name", "description", "starts_at", "ends_at", "active")


async def test_exists(db: AsyncSession, test_id: int) -> bool:
    result = await db.execute(select(Test.id).where(Test.id == test_id))
    return result.first() is not None


async def get_test(db: AsyncSession, test_id: int) -> Optional[Test]:
    """Fetch a test with its template and closed questions, or None."""
    result = await db.execute(select(Test).where(Test.id == test_id))
    return result.scalar_one_or_none()


async def create_test_from_template(
    db: AsyncSession, data: TestCreate, created_by: int
) -> Test:
    """
    Instantiate a test from a template and assign it to a group.

    Name and description default to the template's. The test and its group
    assignment are committed together.

    Args:
        db: Database session
        data: Validated creation payload
        created_by: Id of the admin creating the test

    Returns:
        The persisted test

    Raises:
        TemplateNotFoundError: If the template does not exist
        GroupNotFoundError: If the group does not exist
        InvalidTestWindowError: If ends_at is not after starts_at
    """
    template = await db.get(Template, data.template_id)
    if template is None:
        raise TemplateNotFoundError()
    if await db.get(Group, data.group_id) is None:
        raise GroupNotFoundError()
    if not is_window_valid(data.starts_at, data.ends_at):
        raise InvalidTestWindowError()

    test = Test(
        name=data.name or template.name,
        description=(
            data.description if data.description is not None else template.description
        ),
        template_id=template.id,
        created_by=created_by,
        starts_at=to_utc(data.starts_at),
        ends_at=to_utc(data.ends_at),
        active=True,
    )
    db.add(test)
    await db.flush()

    db.add(
        GroupTest(
            group_id=data.group_id,
            test_id=test.id,
            due_at=to_utc(data.due_at) if data.due_at else None,
        )
    )
    await db.commit()
    await db.refresh(test)

    logger.info(
        f"Created test {test.id} from template {template.id} "
        f"for group {data.group_id}"
    )
    return test


async def update_test(
    db: AsyncSession, test_id: int, patch: TestUpdate
) -> Optional[Test]:
    """
    Apply a partial update to a test.

    The window invariant is checked against the merged values, so moving
    only one end of the window is validated against the stored other end.

    Returns:
        The updated test, or None if it does not exist

    Raises:
        InvalidTestWindowError: If the merged window is empty or inverted
    """
    test = await get_test(db, test_id)
    if test is None:
        return None

    changes = {
        field: getattr(patch, field)
        for field in _PATCHABLE_FIELDS
        if field in patch.model_fields_set and getattr(patch, field) is not None
    }

    starts_at = changes.get("starts_at", test.starts_at)
    ends_at = changes.get("ends_at", test.ends_at)
    if not is_window_valid(starts_at, ends_at):
        raise InvalidTestWindowError()

    for field, value in changes.items():
        if field in ("starts_at", "ends_at"):
            value = to_utc(value)
        setattr(test, field, value)

    await db.commit()
    await db.refresh(test)
    return test


async def list_tests(
    db: AsyncSession,
    search: Optional[str] = None,
    page: int = 1,
    page_size: int = 10,
) -> Tuple[Sequence[Test], int]:
    """
    List tests ordered by newest first, optionally filtered by name prefix.

    Returns:
        Tuple of (tests on the page, total matching count)
    """
    stmt = select(Test)
    count_stmt = select(func.count(Test.id))
    if search:
        condition = func.lower(Test.name).startswith(
            search.strip().lower(), autoescape=True
        )
        stmt = stmt.where(condition)
        count_stmt = count_stmt.where(condition)

    total = (await db.execute(count_stmt)).scalar_one()
    result = await db.execute(
        stmt.order_by(Test.created_at.desc(), Test.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return result.scalars().all(), total


async def get_tests_for_group(db: AsyncSession, group_id: int) -> Sequence[Test]:
    """
    Tests assigned to a group, earliest start first.

    Raises:
        GroupNotFoundError: If the group does not exist
    """
    if await db.get(Group, group_id) is None:
        raise GroupNotFoundError()

    result = await db.execute(
        select(Test)
        .join(GroupTest, GroupTest.test_id == Test.id)
        .where(GroupTest.group_id == group_id)
        .order_by(Test.starts_at, Test.id)
    )
    return result.scalars().all()


async def delete_test_from_group(
    db: AsyncSession, test_id: int, group_id: int
) -> Optional[Test]:
    """
    Unassign a test from a group and delete the test.

    The test must be assigned to the group. Responses and any other
    assignments go with it through cascades.

    Returns:
        The deleted test (detached), or None if the test does not exist or
        is not assigned to the group

    Raises:
        GroupNotFoundError: If the group does not exist
    """
    if await db.get(Group, group_id) is None:
        raise GroupNotFoundError()
    assignment = await db.execute(
        select(GroupTest.id).where(
            GroupTest.group_id == group_id, GroupTest.test_id == test_id
        )
    )
    if assignment.first() is None:
        return None
    test = await get_test(db, test_id)
    if test is None:
        return None

    await db.delete(test)
    await db.commit()

    logger.info(f"Deleted test {test_id} and unassigned it from group {group_id}")
    return test
