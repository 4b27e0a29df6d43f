"""
Pytest fixtures for testing.

Provides:
- Async database (SQLite file per test) and sessions
- App + test client wired to the test database and a small rate limiter
- Factory fixtures for users, courses, classes and coursework
- Token helpers
- In-memory store fakes for unit tests of the authorization core
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from jose import jwt
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from faculty_authz.api.dependencies.database import get_db
from faculty_authz.core.auth import RateLimiter, RateLimitPolicy, Role
from faculty_authz.core.config import settings
from faculty_authz.core.interfaces import SubmissionChain
from faculty_authz.implementations.rate_store.memory import MemoryRateStore
from faculty_authz.main import create_app
from faculty_authz.models import (
    Assignment,
    Base,
    ClassSession,
    Course,
    Enrollment,
    Submission,
    User,
)


# Small caps so limits are reachable in a test
TEST_RATE_LIMITS = {
    Role.STUDENT: 3,
    Role.LECTURER: 5,
    Role.PRL: 8,
    Role.PROGRAM_LEADER: 10,
}


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """Create test database engine."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session used by tests to seed and inspect data."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def rate_limiter() -> RateLimiter:
    return RateLimiter(
        MemoryRateStore(),
        RateLimitPolicy(window_seconds=60, limits=dict(TEST_RATE_LIMITS), default_limit=2),
    )


@pytest.fixture
def app(session_factory, rate_limiter) -> FastAPI:
    """App wired to the test database."""
    application = create_app(session_factory=session_factory, rate_limiter=rate_limiter)

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest_asyncio.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Test client; drains background writes before the database goes away."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    await app.state.background.drain()
    app.dependency_overrides.clear()


# ============ Factory Fixtures ============


class Factory:
    """Creates rows for the reporting schema."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _save(self, row: Any) -> Any:
        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)
        return row

    async def user(
        self,
        role: str = "Student",
        faculty_name: str | None = "FICT",
        department: str | None = "Software Engineering",
        status: str = "Active",
        username: str | None = None,
    ) -> User:
        suffix = uuid4().hex[:8]
        return await self._save(User(
            username=username or f"user-{suffix}",
            email=f"{suffix}@example.com",
            role=role,
            faculty_name=faculty_name,
            department=department,
            status=status,
        ))

    async def course(
        self,
        lecturer: User | None = None,
        faculty_name: str = "FICT",
        code: str | None = None,
    ) -> Course:
        return await self._save(Course(
            name="Course " + (code or uuid4().hex[:4]),
            code=code or f"C{uuid4().hex[:6]}",
            lecturer_id=lecturer.id if lecturer else None,
            faculty_name=faculty_name,
        ))

    async def class_session(self, course: Course, lecturer: User | None = None) -> ClassSession:
        return await self._save(ClassSession(
            course_id=course.id,
            lecturer_id=lecturer.id if lecturer else course.lecturer_id,
            topic="Intro",
        ))

    async def enroll(self, student: User, course: Course, status: str = "Enrolled") -> Enrollment:
        return await self._save(Enrollment(student_id=student.id, course_id=course.id, status=status))

    async def assignment(self, course: Course, created_by: User | None = None) -> Assignment:
        return await self._save(Assignment(
            course_id=course.id,
            created_by=created_by.id if created_by else course.lecturer_id,
            title="Assignment 1",
        ))

    async def submission(self, assignment: Assignment, student: User) -> Submission:
        return await self._save(Submission(
            assignment_id=assignment.id,
            student_id=student.id,
            content="answer",
        ))


@pytest_asyncio.fixture
async def factory(db: AsyncSession) -> Factory:
    """Fixture that provides Factory."""
    return Factory(db)


# ============ Auth Helpers ============


def make_token(
    user_id: int | str,
    role: str | None = None,
    *,
    expires_delta: timedelta = timedelta(minutes=30),
    nested: bool = False,
    secret_key: str | None = None,
    **claims: Any,
) -> str:
    """Sign an access token the way the login service does."""
    expire = datetime.now(timezone.utc) + expires_delta
    identity: dict[str, Any] = dict(claims)
    if role is not None:
        identity["role"] = role

    if nested:
        payload: dict[str, Any] = {"user": {"id": user_id, **identity}, "exp": expire}
    else:
        payload = {"sub": str(user_id), "exp": expire, **identity}

    return jwt.encode(
        payload,
        secret_key or settings.auth.secret_key,
        algorithm=settings.auth.algorithm,
    )


def auth_headers(user: User, role: str | None = None, **kwargs: Any) -> dict[str, str]:
    """Helper to get auth headers for any user."""
    token = make_token(user.id, role if role is not None else user.role, **kwargs)
    return {"Authorization": f"Bearer {token}"}


# ============ Store Fakes ============


@dataclass
class Row:
    """Attribute bag standing in for ORM rows."""
    id: int
    values: dict[str, Any] = field(default_factory=dict)

    def __getattr__(self, name: str) -> Any:
        try:
            return self.__dict__["values"][name]
        except KeyError:
            raise AttributeError(name)


def row(id: int, **values: Any) -> Row:
    return Row(id=id, values=values)


class FakeUserStore:
    """In-memory UserStore."""

    def __init__(self, *users: Row, fail: bool = False):
        self.users = {u.id: u for u in users}
        self.fail = fail
        self.touched: list[int] = []

    async def get_by_id(self, user_id: int) -> Row | None:
        if self.fail:
            raise ConnectionError("database unavailable")
        return self.users.get(user_id)

    async def touch_last_activity(self, user_id: int) -> None:
        self.touched.append(user_id)


class FakeResourceStore:
    """In-memory ResourceStore that records every auxiliary lookup."""

    def __init__(self) -> None:
        self.courses: dict[int, Row] = {}
        self.classes: dict[int, Row] = {}
        self.assignments: dict[int, Row] = {}
        self.submissions: dict[int, Row] = {}
        self.users: dict[int, Row] = {}
        self.enrollments: set[tuple[int, int]] = set()
        self.calls: list[str] = []
        self.fail_on: str | None = None

    def _record(self, name: str) -> None:
        if self.fail_on == name:
            raise ConnectionError(f"{name} failed")
        self.calls.append(name)

    async def get_course(self, course_id: int) -> Row | None:
        self._record("get_course")
        return self.courses.get(course_id)

    async def get_class(self, class_id: int) -> Row | None:
        self._record("get_class")
        return self.classes.get(class_id)

    async def get_assignment(self, assignment_id: int) -> Row | None:
        self._record("get_assignment")
        return self.assignments.get(assignment_id)

    async def get_submission(self, submission_id: int) -> Row | None:
        self._record("get_submission")
        return self.submissions.get(submission_id)

    async def get_user(self, user_id: int) -> Row | None:
        self._record("get_user")
        return self.users.get(user_id)

    async def resolve_course_faculty(self, course_id: int) -> str | None:
        self._record("resolve_course_faculty")
        course = self.courses.get(course_id)
        return course.faculty_name if course else None

    async def is_enrolled(self, student_id: int, course_id: int) -> bool:
        self._record("is_enrolled")
        return (student_id, course_id) in self.enrollments

    async def resolve_submission_chain(self, assignment_id: int) -> SubmissionChain | None:
        self._record("resolve_submission_chain")
        assignment = self.assignments.get(assignment_id)
        if assignment is None:
            return None
        course = self.courses.get(assignment.course_id)
        return SubmissionChain(
            assignment_created_by=assignment.created_by,
            course_lecturer_id=course.lecturer_id if course else None,
            faculty_name=course.faculty_name if course else None,
        )

    def lookups(self) -> list[str]:
        """Calls other than the primary fetch."""
        return [c for c in self.calls if not c.startswith("get_")]
