"""
Pytest configuration and shared fixtures for testing.
"""
import os
from pathlib import Path

# Settings and the engine are built at import time, so the environment must
# be in place before anything from app/ is imported.
_TEST_DB = Path(__file__).parent / "test.db"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_DB}")
os.environ.setdefault("ENV", "test")

from contextlib import asynccontextmanager  # noqa: E402
from datetime import timedelta  # noqa: E402
from typing import AsyncGenerator, Dict  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool  # noqa: E402

from app.core.datetime_utils import utc_now  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.main import app  # noqa: E402
from app.models import (  # noqa: E402
    Base,
    get_db,
    ClosedQuestion,
    Group,
    GroupMember,
    GroupTest,
    QuestionKind,
    Template,
    Test,
    User,
    UserRole,
)


@asynccontextmanager
async def _test_lifespan(app):
    """No-op lifespan for tests.

    Keeps the shared engine's pool alive between tests.
    """
    yield


app.router.lifespan_context = _test_lifespan


# Async test engine (aiosqlite). A file rather than :memory: so that
# separate sessions (concurrency tests) see the same database. NullPool
# because each test runs on its own event loop.
ASYNC_SQLALCHEMY_DATABASE_URL = f"sqlite+aiosqlite:///{_TEST_DB}"

async_test_engine = create_async_engine(
    ASYNC_SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=NullPool,
)
AsyncTestingSessionLocal = async_sessionmaker(
    async_test_engine, class_=AsyncSession, expire_on_commit=False
)


@pytest.fixture(scope="function")
async def async_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh async database session for each test.
    """
    async with async_test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncTestingSessionLocal() as session:
        yield session

    async with async_test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def session_factory(async_db_session):
    """
    Factory for extra sessions on the test database.

    Depends on async_db_session so the schema exists.
    """
    return AsyncTestingSessionLocal


@pytest.fixture(scope="function")
async def async_client(
    async_db_session: AsyncSession,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async test client with async database dependency override.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield async_db_session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_db, None)


async def _create_user(
    db: AsyncSession, email: str, role: UserRole = UserRole.USER
) -> User:
    user = User(email=email, first_name="Test", last_name="User", role=role)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def _headers_for(user: User) -> Dict[str, str]:
    access_token = create_access_token({"user_id": user.id})
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
async def student(async_db_session) -> User:
    """A regular user who answers tests."""
    return await _create_user(async_db_session, "student@example.com")


@pytest.fixture
async def other_student(async_db_session) -> User:
    return await _create_user(async_db_session, "other@example.com")


@pytest.fixture
async def admin_user(async_db_session) -> User:
    return await _create_user(async_db_session, "admin@example.com", UserRole.ADMIN)


@pytest.fixture
def student_headers(student) -> Dict[str, str]:
    return _headers_for(student)


@pytest.fixture
def other_student_headers(other_student) -> Dict[str, str]:
    return _headers_for(other_student)


@pytest.fixture
def admin_headers(admin_user) -> Dict[str, str]:
    return _headers_for(admin_user)


@pytest.fixture
async def ipa_template(async_db_session, admin_user) -> Template:
    """
    Template with one importance question (Q1) and one performance
    question (Q2), in that order.
    """
    template = Template(
        name="Course evaluation",
        description="End of semester survey",
        open_question_text="Anything else?",
        created_by=admin_user.id,
        closed_questions=[
            ClosedQuestion(
                position=0,
                text="How important is clear feedback?",
                kind=QuestionKind.IMPORTANCE,
            ),
            ClosedQuestion(
                position=1,
                text="How clear was the feedback?",
                kind=QuestionKind.PERFORMANCE,
            ),
        ],
    )
    async_db_session.add(template)
    await async_db_session.commit()
    await async_db_session.refresh(template)
    return template


@pytest.fixture
async def student_group(async_db_session, admin_user, student) -> Group:
    """Group containing the student."""
    group = Group(name="Class 3A", description="", created_by=admin_user.id)
    async_db_session.add(group)
    await async_db_session.flush()
    async_db_session.add(GroupMember(group_id=group.id, user_id=student.id))
    await async_db_session.commit()
    await async_db_session.refresh(group)
    return group


@pytest.fixture
async def ipa_test(async_db_session, ipa_template, student_group, admin_user) -> Test:
    """Open test built from ipa_template and assigned to student_group."""
    now = utc_now()
    test = Test(
        name=ipa_template.name,
        description=ipa_template.description,
        template_id=ipa_template.id,
        created_by=admin_user.id,
        starts_at=now - timedelta(days=1),
        ends_at=now + timedelta(days=7),
        active=True,
    )
    async_db_session.add(test)
    await async_db_session.flush()
    async_db_session.add(GroupTest(group_id=student_group.id, test_id=test.id))
    await async_db_session.commit()
    await async_db_session.refresh(test)
    return test
