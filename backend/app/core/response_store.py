"""
Response persistence.

A response is written once and never mutated. The (test_id, user_id)
unique constraint is the final authority on duplicates; callers may
pre-check with has_user_answered_test, but only the constraint is safe
under concurrent submissions.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AlreadySubmittedError
from app.models.models import TestResponse

logger = logging.getLogger(__name__)


async def create_response(
    db: AsyncSession,
    test_id: int,
    user_id: int,
    closed_answers: List[Dict[str, Any]],
    open_answer: Optional[str] = None,
) -> TestResponse:
    """
    Insert one response row and commit.

    Args:
        db: Database session
        test_id: Test being answered
        user_id: Submitting user
        closed_answers: List of {"question_id": int, "value": int}
        open_answer: Normalized open answer or None

    Returns:
        The persisted response

    Raises:
        AlreadySubmittedError: If a response for (test_id, user_id) exists
    """
    response = TestResponse(
        test_id=test_id,
        user_id=user_id,
        closed_answers=closed_answers,
        open_answer=open_answer,
    )
    db.add(response)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if not _is_duplicate_submission(e):
            raise
        logger.warning(
            "Duplicate submission rejected by constraint",
            extra={"test_id": test_id, "user_id": user_id},
        )
        raise AlreadySubmittedError() from e

    await db.refresh(response)
    return response


def _is_duplicate_submission(error: IntegrityError) -> bool:
    message = str(error.orig)
    if "uq_test_response_test_user" in message:
        return True
    # SQLite names the columns instead of the constraint
    return "UNIQUE constraint failed: test_responses.test_id" in message


async def has_user_answered_test(
    db: AsyncSession, user_id: int, test_id: int
) -> bool:
    result = await db.execute(
        select(TestResponse.id).where(
            TestResponse.test_id == test_id, TestResponse.user_id == user_id
        )
    )
    return result.first() is not None


async def get_responses_by_test(
    db: AsyncSession, test_id: int
) -> Sequence[TestResponse]:
    """All responses for a test, oldest first."""
    result = await db.execute(
        select(TestResponse)
        .where(TestResponse.test_id == test_id)
        .order_by(TestResponse.created_at, TestResponse.id)
    )
    return result.scalars().all()


async def get_responses_by_user(
    db: AsyncSession, user_id: int
) -> Sequence[TestResponse]:
    """All responses a user has submitted, newest first."""
    result = await db.execute(
        select(TestResponse)
        .where(TestResponse.user_id == user_id)
        .order_by(TestResponse.created_at.desc(), TestResponse.id.desc())
    )
    return result.scalars().all()


async def count_responses_for_test(db: AsyncSession, test_id: int) -> int:
    result = await db.execute(
        select(func.count(TestResponse.id)).where(TestResponse.test_id == test_id)
    )
    return result.scalar_one()
