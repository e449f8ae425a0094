from datetime import datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from coursehub import models
from coursehub.clock import get_clock
from coursehub.database import Base, get_db
from coursehub.main import app

NOW = datetime(2025, 3, 10, 12, 0, 0)


class FrozenClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class RecordingSink:
    def __init__(self):
        self.sent = []

    async def notify(self, user_id, kind, title, message, related_id=None):
        self.sent.append({
            "user_id": user_id,
            "kind": kind,
            "title": title,
            "message": message,
            "related_id": related_id,
        })


class Factory:
    """Inserts rows directly; password hashes are placeholders"""

    def __init__(self, db):
        self.db = db

    async def _save(self, row):
        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)
        return row

    async def user(self, username="learner", role="student"):
        return await self._save(models.User(username=username, password_hash="x", role=role))

    async def course(self, instructor=None, title="Course"):
        if instructor is None:
            instructor = await self.user(username=f"instructor-{title}", role="instructor")
        return await self._save(models.Course(title=title, instructor_id=instructor.id, status="published"))

    async def lesson(self, course, is_demo=False, order=1, title="Lesson"):
        return await self._save(models.Lesson(
            course_id=course.id, title=title, order=order, is_demo=is_demo
        ))

    async def enrollment(self, user, course, payment_status="approved"):
        return await self._save(models.Enrollment(
            user_id=user.id, course_id=course.id, payment_method="card", payment_status=payment_status
        ))

    async def subscription(self, user, course, end_date, status="active", start_date=None):
        return await self._save(models.Subscription(
            user_id=user.id,
            course_id=course.id,
            status=status,
            start_date=start_date or end_date - timedelta(days=30),
            end_date=end_date,
        ))

    async def test(self, course, passing_score=60):
        return await self._save(models.Test(
            course_id=course.id, title="Quiz", passing_score=passing_score, is_draft=False
        ))

    async def question(self, test, type, points=1, correct_answer=None, config=None, order=0):
        return await self._save(models.Question(
            test_id=test.id,
            type=type,
            question_text=f"{type} question",
            points=points,
            correct_answer=correct_answer,
            config=config,
            order=order,
        ))

    async def option(self, question, text, is_correct=False, order=0):
        return await self._save(models.QuestionOption(
            question_id=question.id, option_text=text, is_correct=is_correct, order=order
        ))


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def clock():
    return FrozenClock(NOW)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
async def client(session_factory, clock):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def bearer(token):
    return {"Authorization": f"Bearer {token}"}
