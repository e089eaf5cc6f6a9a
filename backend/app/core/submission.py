"""
Submission guard: validates and records one user's answers to a test.

The HTTP layer validates the payload with pydantic first; the checks here
repeat that contract for callers that bypass the API (scripts, tests).
Values outside the Likert scale are rejected, never clamped.

The test's time window and active flag are not enforced here.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.error_responses import ErrorMessages
from app.core.exceptions import (
    AlreadySubmittedError,
    SubmissionValidationError,
    TestNotFoundError,
)
from app.core.response_store import create_response, has_user_answered_test
from app.core.test_store import test_exists
from app.core.validators import StringSanitizer
from app.models.models import TestResponse

logger = logging.getLogger(__name__)


def _as_mapping(answer: Any) -> Mapping[str, Any]:
    # Accept pydantic models as well as plain dicts
    if hasattr(answer, "model_dump"):
        return answer.model_dump()
    if isinstance(answer, Mapping):
        return answer
    return {}


def _is_likert_value(value: Any) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and settings.LIKERT_MIN <= value <= settings.LIKERT_MAX
    )


def validate_closed_answers(
    closed_answers: Optional[Iterable[Any]],
) -> List[Dict[str, int]]:
    """
    Check a closed-answer list and return it in its stored shape.

    Args:
        closed_answers: Items with question_id and value

    Returns:
        List of {"question_id": int, "value": int}

    Raises:
        SubmissionValidationError: On an empty list, a missing question id,
            an out-of-range or non-integer value, or a repeated question
    """
    answers = list(closed_answers or [])
    if not answers:
        raise SubmissionValidationError(ErrorMessages.EMPTY_CLOSED_ANSWERS)

    cleaned: List[Dict[str, int]] = []
    seen: set = set()
    duplicates: set = set()
    for index, raw in enumerate(answers):
        answer = _as_mapping(raw)
        question_id = answer.get("question_id")
        if not isinstance(question_id, int) or isinstance(question_id, bool):
            raise SubmissionValidationError(ErrorMessages.missing_question_id(index))

        value = answer.get("value")
        if not _is_likert_value(value):
            raise SubmissionValidationError(
                ErrorMessages.value_out_of_range(
                    question_id, settings.LIKERT_MIN, settings.LIKERT_MAX
                )
            )

        if question_id in seen:
            duplicates.add(question_id)
        seen.add(question_id)
        cleaned.append({"question_id": question_id, "value": value})

    if duplicates:
        raise SubmissionValidationError(
            ErrorMessages.duplicate_question_ids(duplicates)
        )
    return cleaned


async def submit(
    db: AsyncSession,
    test_id: int,
    user_id: int,
    closed_answers: Optional[Iterable[Any]],
    open_answer: Optional[str] = None,
) -> TestResponse:
    """
    Validate and persist one submission.

    Args:
        db: Database session
        test_id: Test being answered
        user_id: Submitting user
        closed_answers: Non-empty list of {question_id, value}
        open_answer: Free text; blank maps to None

    Returns:
        The stored response

    Raises:
        SubmissionValidationError: If the answers are malformed
        TestNotFoundError: If the test does not exist (nothing is stored)
        AlreadySubmittedError: If the user already answered this test
    """
    cleaned = validate_closed_answers(closed_answers)

    if not await test_exists(db, test_id):
        raise TestNotFoundError()

    # Fast path only; the unique constraint decides under concurrency
    if await has_user_answered_test(db, user_id, test_id):
        logger.warning(
            "Duplicate submission rejected",
            extra={"test_id": test_id, "user_id": user_id},
        )
        raise AlreadySubmittedError()

    response = await create_response(
        db,
        test_id=test_id,
        user_id=user_id,
        closed_answers=cleaned,
        open_answer=StringSanitizer.normalize_optional_text(open_answer),
    )

    logger.info(
        f"Stored response {response.id} with {len(cleaned)} closed answers",
        extra={"test_id": test_id, "user_id": user_id},
    )
    return response
