"""
Admin endpoints for question templates.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import template_store
from app.core.auth import require_admin
from app.core.config import settings
from app.core.db_error_handling import handle_db_error
from app.core.error_responses import ErrorMessages, raise_not_found
from app.models import get_db, User
from app.schemas.templates import (
    PaginatedTemplatesResponse,
    TemplateCreate,
    TemplateResponse,
    TemplateUpdate,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED
)
async def create_template(
    payload: TemplateCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create a template with its ordered closed questions."""
    async with handle_db_error(db, "create template"):
        template = await template_store.create_template(
            db, payload, created_by=admin.id
        )
    return TemplateResponse.from_model(template)


@router.get("", response_model=PaginatedTemplatesResponse)
async def list_templates(
    search: Optional[str] = Query(
        None, max_length=200, description="Case-insensitive name prefix"
    ),
    page: int = Query(1, ge=1),
    page_size: int = Query(
        settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE
    ),
    db: AsyncSession = Depends(get_db),
):
    """List templates, newest first."""
    templates, total = await template_store.list_templates(
        db, search=search, page=page, page_size=page_size
    )
    return PaginatedTemplatesResponse(
        items=[TemplateResponse.from_model(t) for t in templates],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{template_id}", response_model=TemplateResponse)
async def get_template(
    template_id: int,
    db: AsyncSession = Depends(get_db),
):
    template = await template_store.get_template(db, template_id)
    if template is None:
        raise_not_found(ErrorMessages.TEMPLATE_NOT_FOUND)
    return TemplateResponse.from_model(template)


@router.put("/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: int,
    payload: TemplateUpdate,
    db: AsyncSession = Depends(get_db),
):
    """
    Update a template.

    Closed questions with an id are edited in place and keep that id, so
    stored answers keep pointing at them. Questions without an id are
    appended. Changing a question's type also changes the results of tests
    that were already answered.

    Raises:
        HTTPException: 404 if the template does not exist, 400 if a question
            id does not belong to it
    """
    async with handle_db_error(db, "update template"):
        template = await template_store.update_template(db, template_id, payload)
    if template is None:
        raise_not_found(ErrorMessages.TEMPLATE_NOT_FOUND)
    return TemplateResponse.from_model(template)


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    template_id: int,
    db: AsyncSession = Depends(get_db),
):
    """
    Delete a template.

    Raises:
        HTTPException: 404 if the template does not exist, 409 if a test was
            created from it
    """
    async with handle_db_error(db, "delete template"):
        deleted = await template_store.delete_template(db, template_id)
    if not deleted:
        raise_not_found(ErrorMessages.TEMPLATE_NOT_FOUND)
