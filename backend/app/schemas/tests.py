"""
Pydantic schemas for test (survey instance) endpoints.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime

from app.core.datetime_utils import is_within_window
from app.core.validators import StringSanitizer, TextValidator
from app.models.models import Test
from app.schemas.templates import TemplateResponse


class TestCreate(BaseModel):
    """Schema for creating a test from a template and assigning it to a group."""

    template_id: int = Field(..., description="Template to instantiate")
    group_id: int = Field(..., description="Group the test is assigned to")
    name: Optional[str] = Field(
        None, max_length=200, description="Defaults to the template name"
    )
    description: Optional[str] = Field(
        None, max_length=5000, description="Defaults to the template description"
    )
    starts_at: datetime
    ends_at: datetime
    due_at: Optional[datetime] = Field(
        None, description="Optional due date recorded on the group assignment"
    )

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: Optional[str]) -> Optional[str]:
        return StringSanitizer.normalize_optional_text(v)

    @field_validator("description")
    @classmethod
    def sanitize_description(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return StringSanitizer.sanitize_text(v)


class TestUpdate(BaseModel):
    """
    Schema for patching a test.

    The template reference is immutable, so unknown fields (including
    template_id) are rejected.
    """

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    active: Optional[bool] = None

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


class TestInfoResponse(BaseModel):
    """Schema for a test without its template."""

    id: int
    name: str
    description: str
    template_id: int
    created_by: int
    starts_at: datetime
    ends_at: datetime
    active: bool
    is_open: bool = Field(
        ..., description="Active and the current time is inside the window"
    )
    created_at: datetime

    @classmethod
    def _fields_from_model(cls, test: Test) -> dict:
        return {
            "id": test.id,
            "name": test.name,
            "description": test.description or "",
            "template_id": test.template_id,
            "created_by": test.created_by,
            "starts_at": test.starts_at,
            "ends_at": test.ends_at,
            "active": test.active,
            "is_open": bool(test.active)
            and is_within_window(test.starts_at, test.ends_at),
            "created_at": test.created_at,
        }

    @classmethod
    def from_model(cls, test: Test) -> "TestInfoResponse":
        return cls(**cls._fields_from_model(test))


class TestWithTemplateResponse(TestInfoResponse):
    """Schema for a test with its template questions populated."""

    template: TemplateResponse

    @classmethod
    def from_model(cls, test: Test) -> "TestWithTemplateResponse":
        return cls(
            **cls._fields_from_model(test),
            template=TemplateResponse.from_model(test.template),
        )


class PaginatedTestsResponse(BaseModel):
    """Schema for a page of tests."""

    items: List[TestWithTemplateResponse]
    total: int = Field(..., ge=0, description="Total tests matching the search")
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)


class TestDeletedResponse(BaseModel):
    """Schema returned after deleting a test from a group."""

    id: int
    name: str
    group_id: int
    message: str = "Test deleted and unassigned from group"
