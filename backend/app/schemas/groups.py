"""
Pydantic schemas for group endpoints.
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime

from app.core.validators import StringSanitizer, TextValidator
from app.models.models import Group


class GroupCreate(BaseModel):
    """Schema for creating a group."""

    name: str = Field(..., max_length=200)
    description: str = Field("", max_length=5000)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return TextValidator.validate_non_empty_text(v, "Name")

    @field_validator("description")
    @classmethod
    def sanitize_description(cls, v: str) -> str:
        return StringSanitizer.sanitize_text(v)


class GroupTestAssignmentResponse(BaseModel):
    test_id: int
    assigned_at: datetime
    due_at: Optional[datetime] = None


class GroupResponse(BaseModel):
    """Schema for group responses."""

    id: int
    name: str
    description: str
    member_ids: List[int]
    tests: List[GroupTestAssignmentResponse]
    created_at: datetime

    @classmethod
    def from_model(cls, group: Group) -> "GroupResponse":
        return cls(
            id=group.id,
            name=group.name,
            description=group.description or "",
            member_ids=sorted(member.id for member in group.members),
            tests=[
                GroupTestAssignmentResponse(
                    test_id=assignment.test_id,
                    assigned_at=assignment.assigned_at,
                    due_at=assignment.due_at,
                )
                for assignment in group.test_assignments
            ],
            created_at=group.created_at,
        )


class GroupUpdate(BaseModel):
    """Schema for renaming a group or changing its description."""

    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)

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


class GroupTestAssign(BaseModel):
    """Schema for assigning a test to a group."""

    test_id: int
    due_at: Optional[datetime] = Field(
        None, description="Optional due date shown to group members"
    )


class GroupSummaryResponse(BaseModel):
    """
    Group as seen by a regular user.

    Member ids are left out; only the count and the caller's own
    membership are shown.
    """

    id: int
    name: str
    description: str
    members_count: int
    is_member: bool
    tests: List[GroupTestAssignmentResponse]
    created_at: datetime

    @classmethod
    def from_model(cls, group: Group, user_id: int) -> "GroupSummaryResponse":
        return cls(
            id=group.id,
            name=group.name,
            description=group.description or "",
            members_count=len(group.members),
            is_member=any(member.id == user_id for member in group.members),
            tests=[
                GroupTestAssignmentResponse(
                    test_id=assignment.test_id,
                    assigned_at=assignment.assigned_at,
                    due_at=assignment.due_at,
                )
                for assignment in group.test_assignments
            ],
            created_at=group.created_at,
        )


class GroupMembershipResponse(BaseModel):
    """Result of joining or leaving a group."""

    group_id: int
    is_member: bool
    changed: bool = Field(
        ..., description="False when the user already was (or was not) a member"
    )
    message: str
