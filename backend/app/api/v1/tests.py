"""
Test lookup endpoints for authenticated users.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import test_store
from app.core.auth import get_current_user
from app.core.error_responses import ErrorMessages, raise_not_found
from app.models import get_db, User
from app.schemas.tests import TestInfoResponse, TestWithTemplateResponse

router = APIRouter()


@router.get("/group/{group_id}", response_model=List[TestInfoResponse])
async def get_tests_for_group(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    List the tests assigned to a group.

    Raises:
        HTTPException: 404 if the group does not exist
    """
    tests = await test_store.get_tests_for_group(db, group_id)
    return [TestInfoResponse.from_model(t) for t in tests]


@router.get("/{test_id}", response_model=TestWithTemplateResponse)
async def get_test(
    test_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a test with the questions of its template."""
    test = await test_store.get_test(db, test_id)
    if test is None:
        raise_not_found(ErrorMessages.TEST_NOT_FOUND)
    return TestWithTemplateResponse.from_model(test)
