"""
Pydantic schemas for answer submission and IPA results.
"""
from pydantic import BaseModel, Field, StrictInt, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime

from app.core.config import settings
from app.core.validators import StringSanitizer
from app.models.models import TestResponse


class ClosedAnswerIn(BaseModel):
    """One Likert rating for one closed question."""

    question_id: StrictInt = Field(..., description="Closed question ID")
    value: StrictInt = Field(
        ...,
        ge=settings.LIKERT_MIN,
        le=settings.LIKERT_MAX,
        description="Rating on the Likert scale",
    )


class AnswerSubmission(BaseModel):
    """
    Schema for submitting answers to a test.

    An empty closed_answers list is accepted here and rejected by the
    submission guard with a 400, matching the error for library callers.
    """

    closed_answers: List[ClosedAnswerIn] = Field(
        ..., description="Closed answers (at least one)"
    )
    open_answer: Optional[str] = Field(
        None,
        max_length=settings.OPEN_ANSWER_MAX_LENGTH,
        description="Free-text answer to the open question",
    )

    @field_validator("open_answer")
    @classmethod
    def normalize_open_answer(cls, v: Optional[str]) -> Optional[str]:
        return StringSanitizer.normalize_optional_text(v)


class StoredAnswerResponse(BaseModel):
    """
    Schema for a stored response.

    closed_answers is returned as stored, so rows imported with malformed
    entries are still visible to admins.
    """

    id: int
    test_id: int
    user_id: int
    closed_answers: List[Dict[str, Any]]
    open_answer: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_model(cls, response: TestResponse) -> "StoredAnswerResponse":
        return cls(
            id=response.id,
            test_id=response.test_id,
            user_id=response.user_id,
            closed_answers=[
                entry for entry in (response.closed_answers or [])
                if isinstance(entry, dict)
            ],
            open_answer=response.open_answer,
            created_at=response.created_at,
        )


class AggregatedResultsResponse(BaseModel):
    """Averaged IPA scores for one test."""

    test_id: int
    avg_importance: Optional[float] = Field(
        None, description="Mean of all importance ratings, null when none"
    )
    avg_performance: Optional[float] = Field(
        None, description="Mean of all performance ratings, null when none"
    )
    total_responses: int = Field(..., ge=0)
