"""
Admin endpoints for tests.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import test_store
from app.core.auth import require_admin
from app.core.config import settings
from app.core.db_error_handling import handle_db_error
from app.core.error_responses import ErrorMessages, raise_not_found
from app.models import get_db, User
from app.schemas.tests import (
    PaginatedTestsResponse,
    TestCreate,
    TestDeletedResponse,
    TestInfoResponse,
    TestUpdate,
    TestWithTemplateResponse,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "", response_model=TestInfoResponse, status_code=status.HTTP_201_CREATED
)
async def create_test(
    payload: TestCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a test from a template and assign it to a group.

    Raises:
        HTTPException: 404 if the template or group does not exist, 400 if
            ends_at is not after starts_at
    """
    async with handle_db_error(db, "create test"):
        test = await test_store.create_test_from_template(
            db, payload, created_by=admin.id
        )
    return TestInfoResponse.from_model(test)


@router.get("", response_model=PaginatedTestsResponse)
async def list_tests(
    search: Optional[str] = Query(
        None, max_length=200, description="Case-insensitive name prefix"
    ),
    page: int = Query(1, ge=1),
    page_size: int = Query(
        settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE
    ),
    db: AsyncSession = Depends(get_db),
):
    """List tests with their templates, newest first."""
    tests, total = await test_store.list_tests(
        db, search=search, page=page, page_size=page_size
    )
    return PaginatedTestsResponse(
        items=[TestWithTemplateResponse.from_model(t) for t in tests],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.patch("/{test_id}", response_model=TestInfoResponse)
async def update_test(
    test_id: int,
    patch: TestUpdate,
    db: AsyncSession = Depends(get_db),
):
    """
    Patch a test's name, description, window or active flag.

    The template cannot be changed; sending template_id is a 422.
    """
    async with handle_db_error(db, "update test"):
        test = await test_store.update_test(db, test_id, patch)
    if test is None:
        raise_not_found(ErrorMessages.TEST_NOT_FOUND)
    return TestInfoResponse.from_model(test)


@router.delete("/{test_id}/group/{group_id}", response_model=TestDeletedResponse)
async def delete_test_from_group(
    test_id: int,
    group_id: int,
    db: AsyncSession = Depends(get_db),
):
    """
    Delete a test through a group it is assigned to, with its responses.

    Raises:
        HTTPException: 404 if the group or test does not exist, or the test
            is not assigned to the group
    """
    async with handle_db_error(db, "delete test"):
        test = await test_store.delete_test_from_group(db, test_id, group_id)
    if test is None:
        if await test_store.test_exists(db, test_id):
            raise_not_found(ErrorMessages.TEST_NOT_IN_GROUP)
        raise_not_found(ErrorMessages.TEST_NOT_FOUND)
    return TestDeletedResponse(id=test_id, name=test.name, group_id=group_id)
