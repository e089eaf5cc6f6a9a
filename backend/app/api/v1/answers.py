"""
Answer submission and IPA results endpoints.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import ipa_aggregation, response_store, submission, test_store
from app.core.auth import get_current_user, require_admin
from app.core.db_error_handling import handle_db_error
from app.core.error_responses import ErrorMessages, raise_forbidden, raise_not_found
from app.models import get_db, User, UserRole
from app.schemas.answers import (
    AggregatedResultsResponse,
    AnswerSubmission,
    StoredAnswerResponse,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/{test_id}",
    response_model=StoredAnswerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_answers(
    test_id: int,
    payload: AnswerSubmission,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Submit the current user's answers to a test.

    Each user may answer a test once. A second submission, including one
    racing the first, is rejected with 409.

    Raises:
        HTTPException: 400 for an empty answer list, 404 if the test does
            not exist, 409 if the user already answered
    """
    async with handle_db_error(
        db, "submit answers", detail=ErrorMessages.SUBMISSION_FAILED
    ):
        response = await submission.submit(
            db,
            test_id=test_id,
            user_id=current_user.id,
            closed_answers=payload.closed_answers,
            open_answer=payload.open_answer,
        )
    return StoredAnswerResponse.from_model(response)


@router.get("/test/{test_id}", response_model=List[StoredAnswerResponse])
async def get_answers_by_test(
    test_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """List every response to a test. Admin only."""
    responses = await response_store.get_responses_by_test(db, test_id)
    return [StoredAnswerResponse.from_model(r) for r in responses]


@router.get("/user/{user_id}", response_model=List[StoredAnswerResponse])
async def get_answers_by_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    List a user's responses.

    Users may read their own answers; admins may read anyone's.
    """
    if current_user.id != user_id and current_user.role != UserRole.ADMIN:
        raise_forbidden(ErrorMessages.ANSWERS_ACCESS_DENIED)

    responses = await response_store.get_responses_by_user(db, user_id)
    return [StoredAnswerResponse.from_model(r) for r in responses]


@router.get("/results/{test_id}", response_model=AggregatedResultsResponse)
async def get_aggregated_results(
    test_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Get the averaged importance and performance scores for a test.

    Returns 404 both when the test does not exist and when no answer could
    be classified, since neither has results to show.
    """
    if not await test_store.test_exists(db, test_id):
        raise_not_found(ErrorMessages.TEST_NOT_FOUND)

    async with handle_db_error(
        db, "aggregate IPA results", detail=ErrorMessages.AGGREGATION_FAILED
    ):
        result = await ipa_aggregation.aggregate(db, test_id)
        total = await response_store.count_responses_for_test(db, test_id)

    if result.is_empty:
        raise_not_found(ErrorMessages.NO_RESULTS_FOR_TEST)

    return AggregatedResultsResponse(
        test_id=test_id,
        avg_importance=result.avg_importance,
        avg_performance=result.avg_performance,
        total_responses=total,
    )
