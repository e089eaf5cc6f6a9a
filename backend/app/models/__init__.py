"""
Models package for the IPA backend.
"""
from .base import Base, async_engine, AsyncSessionLocal, get_db
from .models import (
    User,
    UserRole,
    Group,
    GroupMember,
    GroupTest,
    Template,
    ClosedQuestion,
    QuestionKind,
    Test,
    TestResponse,
)

__all__ = [
    "Base",
    "async_engine",
    "AsyncSessionLocal",
    "get_db",
    "User",
    "UserRole",
    "Group",
    "GroupMember",
    "GroupTest",
    "Template",
    "ClosedQuestion",
    "QuestionKind",
    "Test",
    "TestResponse",
]
