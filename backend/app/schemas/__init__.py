"""
Pydantic schemas for request/response validation.
"""
from .templates import (
    ClosedQuestionCreate,
    ClosedQuestionUpdate,
    ClosedQuestionResponse,
    TemplateCreate,
    TemplateUpdate,
    TemplateResponse,
    PaginatedTemplatesResponse,
)
from .tests import (
    TestCreate,
    TestUpdate,
    TestInfoResponse,
    TestWithTemplateResponse,
    PaginatedTestsResponse,
    TestDeletedResponse,
)
from .answers import (
    ClosedAnswerIn,
    AnswerSubmission,
    StoredAnswerResponse,
    AggregatedResultsResponse,
)
from .groups import (
    GroupCreate,
    GroupUpdate,
    GroupTestAssign,
    GroupResponse,
    GroupSummaryResponse,
    GroupMembershipResponse,
    GroupTestAssignmentResponse,
)

__all__ = [
    "ClosedQuestionCreate",
    "ClosedQuestionUpdate",
    "ClosedQuestionResponse",
    "TemplateCreate",
    "TemplateUpdate",
    "TemplateResponse",
    "PaginatedTemplatesResponse",
    "TestCreate",
    "TestUpdate",
    "TestInfoResponse",
    "TestWithTemplateResponse",
    "PaginatedTestsResponse",
    "TestDeletedResponse",
    "ClosedAnswerIn",
    "AnswerSubmission",
    "StoredAnswerResponse",
    "AggregatedResultsResponse",
    "GroupCreate",
    "GroupUpdate",
    "GroupTestAssign",
    "GroupResponse",
    "GroupSummaryResponse",
    "GroupMembershipResponse",
    "GroupTestAssignmentResponse",
]
