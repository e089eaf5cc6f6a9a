"""
Pydantic schemas for question template endpoints.
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from typing_extensions import Self
from datetime import datetime

from app.core.validators import StringSanitizer, TextValidator
from app.models.models import QuestionKind, Template


class ClosedQuestionCreate(BaseModel):
    """Schema for a new closed (Likert) question."""

    text: str = Field(..., max_length=2000, description="Question text")
    type: QuestionKind = Field(
        ..., description="Which IPA dimension the question measures"
    )

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        return TextValidator.validate_non_empty_text(v, "Question text")


class ClosedQuestionUpdate(BaseModel):
    """
    Schema for editing or appending a closed question.

    With an id the question is edited in place; without one it is appended
    and both text and type are required.
    """

    id: Optional[int] = Field(None, description="Existing closed question ID")
    text: Optional[str] = Field(None, max_length=2000)
    type: Optional[QuestionKind] = None

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return TextValidator.validate_non_empty_text(v, "Question text")

    @model_validator(mode="after")
    def validate_new_question(self) -> Self:
        """New questions need both text and type."""
        if self.id is None and (self.text is None or self.type is None):
            raise ValueError("New closed questions require both text and type")
        return self


class TemplateCreate(BaseModel):
    """Schema for creating a template."""

    name: str = Field(..., max_length=200, description="Template name")
    description: str = Field("", max_length=5000)
    closed_questions: List[ClosedQuestionCreate] = Field(
        ..., min_length=1, description="Ordered closed questions"
    )
    open_question: Optional[str] = Field(
        None, max_length=2000, description="Optional open question text"
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return TextValidator.validate_non_empty_text(v, "Name")

    @field_validator("description")
    @classmethod
    def sanitize_description(cls, v: str) -> str:
        return StringSanitizer.sanitize_text(v)

    @field_validator("open_question")
    @classmethod
    def normalize_open_question(cls, v: Optional[str]) -> Optional[str]:
        return StringSanitizer.normalize_optional_text(v)


class TemplateUpdate(BaseModel):
    """Schema for partially updating a template."""

    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    open_question: Optional[str] = Field(None, max_length=2000)
    closed_questions: Optional[List[ClosedQuestionUpdate]] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return TextValidator.validate_non_empty_text(v, "Name")

    @field_validator("description")
    @classmethod
    def sanitize_description(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return StringSanitizer.sanitize_text(v)

    @field_validator("open_question")
    @classmethod
    def normalize_open_question(cls, v: Optional[str]) -> Optional[str]:
        return StringSanitizer.normalize_optional_text(v)


class ClosedQuestionResponse(BaseModel):
    """Schema for a closed question in API responses."""

    id: int
    text: str
    type: QuestionKind


class TemplateResponse(BaseModel):
    """Schema for template responses."""

    id: int = Field(..., description="Template ID")
    name: str
    description: str
    closed_questions: List[ClosedQuestionResponse]
    open_question: Optional[str] = Field(
        None, description="Open question text, null when the template has none"
    )
    created_by: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, template: Template) -> "TemplateResponse":
        """Build the response from an ORM template with questions loaded."""
        return cls(
            id=template.id,
            name=template.name,
            description=template.description or "",
            closed_questions=[
                ClosedQuestionResponse(id=q.id, text=q.text, type=q.kind)
                for q in template.closed_questions
            ],
            open_question=template.open_question_text,
            created_by=template.created_by,
            created_at=template.created_at,
            updated_at=template.updated_at,
        )


class PaginatedTemplatesResponse(BaseModel):
    """Schema for a page of templates."""

    items: List[TemplateResponse]
    total: int = Field(..., ge=0, description="Total templates matching the search")
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
