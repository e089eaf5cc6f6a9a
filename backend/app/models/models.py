"""
Database models for the IPA analysis backend.
"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Text,
    Enum,
    JSON,
    UniqueConstraint,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import enum

from .base import Base


class UserRole(str, enum.Enum):
    """User role enumeration."""

    USER = "user"
    ADMIN = "admin"


class QuestionKind(str, enum.Enum):
    """Which side of the IPA pair a closed question measures."""

    IMPORTANCE = "importance"
    PERFORMANCE = "performance"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """User model. Students have the USER role, survey owners ADMIN."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    # Relationships
    responses = relationship(
        "TestResponse", back_populates="user", cascade="all, delete-orphan"
    )
    groups = relationship(
        "Group", secondary="group_members", back_populates="members"
    )


class GroupMember(Base):
    """Junction table between groups and their member users."""

    __tablename__ = "group_members"

    group_id = Column(
        Integer, ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    joined_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    __table_args__ = (Index("ix_group_members_user_id", "user_id"),)


class Group(Base):
    """A group of users that tests are assigned to."""

    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, default="", nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    # Relationships
    members = relationship(
        "User", secondary="group_members", back_populates="groups", lazy="selectin"
    )
    test_assignments = relationship(
        "GroupTest",
        back_populates="group",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class Template(Base):
    """Reusable question set that tests are instantiated from."""

    __tablename__ = "templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, default="", nullable=False)
    open_question_text = Column(Text, nullable=True)  # NULL = no open question
    created_by = Column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now, nullable=False
    )

    # Relationships
    closed_questions = relationship(
        "ClosedQuestion",
        back_populates="template",
        cascade="all, delete-orphan",
        order_by="ClosedQuestion.position",
        lazy="selectin",
    )
    tests = relationship("Test", back_populates="template")


class ClosedQuestion(Base):
    """
    Likert-scale question inside a template.

    The id is referenced by stored responses, so rows are edited in place
    and never renumbered.
    """

    __tablename__ = "closed_questions"

    id = Column(Integer, primary_key=True, index=True)
    template_id = Column(
        Integer,
        ForeignKey("templates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False, default=0)
    text = Column(Text, nullable=False)
    kind = Column(Enum(QuestionKind), nullable=False)

    # Relationships
    template = relationship("Template", back_populates="closed_questions")


class Test(Base):
    """A time-windowed survey instance created from a template."""

    __test__ = False  # keep pytest from collecting the model

    __tablename__ = "tests"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, default="", nullable=False)
    # Immutable after creation: nothing in the update path writes it
    template_id = Column(
        Integer, ForeignKey("templates.id", ondelete="RESTRICT"), nullable=False
    )
    created_by = Column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    starts_at = Column(DateTime(timezone=True), nullable=False)
    ends_at = Column(DateTime(timezone=True), nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    # Relationships
    template = relationship("Template", back_populates="tests", lazy="selectin")
    responses = relationship(
        "TestResponse", back_populates="test", cascade="all, delete-orphan"
    )
    group_assignments = relationship(
        "GroupTest", back_populates="test", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_tests_name", "name"),
        Index("ix_tests_template_id", "template_id"),
        Index("ix_tests_active", "active"),
        CheckConstraint("ends_at > starts_at", name="ck_tests_window_valid"),
    )


class GroupTest(Base):
    """Assignment of a test to a group."""

    __test__ = False

    __tablename__ = "group_tests"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(
        Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False
    )
    test_id = Column(
        Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False
    )
    assigned_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
    due_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    group = relationship("Group", back_populates="test_assignments")
    test = relationship("Test", back_populates="group_assignments", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("group_id", "test_id", name="uq_group_test"),
        Index("ix_group_tests_test_id", "test_id"),
    )


class TestResponse(Base):
    """
    One user's submitted answer set for one test.

    closed_answers is a JSON list of {"question_id": int, "value": int}.
    The question ids are resolved against templates at aggregation time.
    """

    __test__ = False

    __tablename__ = "test_responses"

    id = Column(Integer, primary_key=True, index=True)
    test_id = Column(
        Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    closed_answers = Column(JSON, nullable=False, default=list)
    open_answer = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    # Relationships
    test = relationship("Test", back_populates="responses")
    user = relationship("User", back_populates="responses")

    # At most one submission per user per test, enforced by the database
    __table_args__ = (
        UniqueConstraint("test_id", "user_id", name="uq_test_response_test_user"),
        Index("ix_test_responses_test_id", "test_id"),
        Index("ix_test_responses_user_id", "user_id"),
    )
