"""
Template persistence and question-type lookup.

Templates own an ordered list of closed questions, each tagged importance or
performance. Question ids are referenced from stored responses, so updates
edit rows in place and only ever append new questions.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.error_responses import ErrorMessages
from app.core.exceptions import (
    InvalidTemplateError,
    TemplateInUseError,
    TemplateNotFoundError,
)
from app.models.models import ClosedQuestion, QuestionKind, Template, Test
from app.schemas.templates import TemplateCreate, TemplateUpdate

logger = logging.getLogger(__name__)


async def get_template(db: AsyncSession, template_id: int) -> Optional[Template]:
    """Fetch a template with its closed questions, or None."""
    result = await db.execute(select(Template).where(Template.id == template_id))
    return result.scalar_one_or_none()


async def list_templates(
    db: AsyncSession,
    search: Optional[str] = None,
    page: int = 1,
    page_size: int = 10,
) -> Tuple[Sequence[Template], int]:
    """
    List templates ordered by newest first.

    Args:
        db: Database session
        search: Optional case-insensitive name prefix
        page: 1-based page number
        page_size: Rows per page

    Returns:
        Tuple of (templates on the page, total matching count)
    """
    stmt = select(Template)
    count_stmt = select(func.count(Template.id))
    if search:
        condition = func.lower(Template.name).startswith(
            search.strip().lower(), autoescape=True
        )
        stmt = stmt.where(condition)
        count_stmt = count_stmt.where(condition)

    total = (await db.execute(count_stmt)).scalar_one()
    result = await db.execute(
        stmt.order_by(Template.created_at.desc(), Template.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return result.scalars().all(), total


async def create_template(
    db: AsyncSession, data: TemplateCreate, created_by: int
) -> Template:
    """
    Create a template and its closed questions in one transaction.

    Args:
        db: Database session
        data: Validated template payload
        created_by: Id of the admin creating the template

    Returns:
        The persisted template with question ids assigned
    """
    template = Template(
        name=data.name,
        description=data.description,
        open_question_text=data.open_question,
        created_by=created_by,
        closed_questions=[
            ClosedQuestion(position=index, text=question.text, kind=question.type)
            for index, question in enumerate(data.closed_questions)
        ],
    )
    db.add(template)
    await db.commit()
    await db.refresh(template)

    logger.info(
        f"Created template {template.id} with "
        f"{len(template.closed_questions)} closed questions"
    )
    return template


async def update_template(
    db: AsyncSession, template_id: int, data: TemplateUpdate
) -> Optional[Template]:
    """
    Apply a partial update to a template.

    Closed questions with an id are edited in place; questions without an
    id are appended. Questions omitted from the payload are left untouched,
    since removing them would orphan answers that reference them.

    Returns:
        The updated template, or None if it does not exist

    Raises:
        InvalidTemplateError: If an id does not belong to this template
    """
    template = await get_template(db, template_id)
    if template is None:
        return None

    existing: Dict[int, ClosedQuestion] = {q.id: q for q in template.closed_questions}
    if data.closed_questions is not None:
        unknown = {q.id for q in data.closed_questions if q.id is not None} - set(
            existing
        )
        if unknown:
            raise InvalidTemplateError(
                ErrorMessages.unknown_closed_questions(unknown)
            )

    fields = data.model_fields_set
    if "name" in fields and data.name is not None:
        template.name = data.name
    if "description" in fields and data.description is not None:
        template.description = data.description
    if "open_question" in fields:
        # Explicit null removes the open question
        template.open_question_text = data.open_question

    if data.closed_questions is not None:
        next_position = len(template.closed_questions)
        for question in data.closed_questions:
            if question.id is None:
                template.closed_questions.append(
                    ClosedQuestion(
                        position=next_position,
                        text=question.text,
                        kind=question.type,
                    )
                )
                next_position += 1
                continue

            row = existing[question.id]
            if question.text is not None:
                row.text = question.text
            if question.type is not None and question.type != row.kind:
                logger.info(
                    f"Closed question {row.id} type changed from "
                    f"{row.kind.value} to {question.type.value}; "
                    "historical aggregation follows the new type"
                )
                row.kind = question.type

    await db.commit()
    await db.refresh(template)
    return template


async def delete_template(db: AsyncSession, template_id: int) -> bool:
    """
    Delete a template that no test references.

    Returns:
        True if deleted, False if it did not exist

    Raises:
        TemplateInUseError: If any test was created from the template
    """
    template = await get_template(db, template_id)
    if template is None:
        return False

    in_use = (
        await db.execute(
            select(func.count(Test.id)).where(Test.template_id == template_id)
        )
    ).scalar_one()
    if in_use:
        raise TemplateInUseError()

    await db.delete(template)
    await db.commit()
    logger.info(f"Deleted template {template_id}")
    return True


async def require_template(db: AsyncSession, template_id: int) -> Template:
    """Fetch a template or raise TemplateNotFoundError."""
    template = await get_template(db, template_id)
    if template is None:
        raise TemplateNotFoundError()
    return template


async def find_question_type(
    db: AsyncSession, question_id: int
) -> Optional[QuestionKind]:
    """
    Look up the declared type of a closed question across all templates.

    Args:
        db: Database session
        question_id: Closed question id as stored in a response

    Returns:
        The question's current type, or None if no such question exists
    """
    result = await db.execute(
        select(ClosedQuestion.kind).where(ClosedQuestion.id == question_id)
    )
    return result.scalar_one_or_none()


class QuestionTypeResolver:
    """
    Per-call memo around find_question_type.

    One resolver lives for a single aggregation run, so a template edited
    between runs is always seen fresh. Misses are cached too.
    """

    def __init__(self, db: AsyncSession):
        self._db = db
        self._cache: Dict[int, Optional[QuestionKind]] = {}
        self.lookups = 0

    async def resolve(self, question_id: int) -> Optional[QuestionKind]:
        if question_id not in self._cache:
            self.lookups += 1
            self._cache[question_id] = await find_question_type(
                self._db, question_id
            )
        return self._cache[question_id]

    async def prefetch(self, question_ids: List[int]) -> None:
        """Resolve many ids with a single query."""
        missing = [qid for qid in set(question_ids) if qid not in self._cache]
        if not missing:
            return
        self.lookups += 1
        result = await self._db.execute(
            select(ClosedQuestion.id, ClosedQuestion.kind).where(
                ClosedQuestion.id.in_(missing)
            )
        )
        found = {qid: kind for qid, kind in result.all()}
        for qid in missing:
            self._cache[qid] = found.get(qid)
