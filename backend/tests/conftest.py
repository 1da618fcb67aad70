"""
Quiz Platform - Test Configuration
Pytest fixtures and configuration for testing
"""
import asyncio
import uuid
from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.ai.agents.examiner import ExaminerAgent, get_examiner_agent
from app.ai.agents.feedback import FeedbackAgent, get_feedback_agent
from app.ai.core.llm import LLMResponse, extract_json
from app.core.database import Base, get_db
from app.core.security import create_access_token, get_password_hash
from app.main import app
from app.models.user import User, UserRole

TEST_PASSWORD = "Password123"


class StubLLM:
    """Stands in for LLMClient: canned reply, optional delay or failure."""

    provider = "stub"
    model = "stub-model"

    def __init__(self, reply: str = "{}", configured: bool = True, delay: float = 0.0, error: Exception | None = None):
        self.reply = reply
        self.configured = configured
        self.delay = delay
        self.error = error
        self.calls = 0

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def generate(self, prompt: str, system_prompt: str | None = None, agent_name: str = "") -> LLMResponse:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return LLMResponse(content=self.reply, model=self.model)

    async def generate_json(self, prompt: str, system_prompt: str | None = None, agent_name: str = "") -> Any:
        response = await self.generate(prompt, system_prompt, agent_name)
        return extract_json(response.content)


@pytest.fixture
def stub_llm():
    return StubLLM


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Fresh SQLite database file per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """A session for direct service-level tests and assertions."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    """Test client with one session per request and offline AI agents."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_feedback_agent] = lambda: FeedbackAgent(llm_client=StubLLM(configured=False))
    app.dependency_overrides[get_examiner_agent] = lambda: ExaminerAgent(llm_client=StubLLM(configured=False))

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ============================================================================
# Users
# ============================================================================

_password_hash: str | None = None


def _hashed_test_password() -> str:
    global _password_hash
    if _password_hash is None:
        _password_hash = get_password_hash(TEST_PASSWORD)
    return _password_hash


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(subject=str(user.id), role=UserRole(user.role).value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(session_maker):
    """Factory: insert a user and return (user, auth headers)."""

    async def _make(role: UserRole = UserRole.STUDENT, name: str | None = None) -> tuple[User, dict[str, str]]:
        async with session_maker() as session:
            user = User(
                id=uuid.uuid4(),
                email=f"{role.value}-{uuid.uuid4().hex[:8]}@school.edu",
                name=name or f"Test {role.value.title()}",
                role=role.value,
                hashed_password=_hashed_test_password(),
                is_active=True,
                failed_login_attempts=0,
            )
            session.add(user)
            await session.commit()
        return user, auth_headers(user)

    return _make


@pytest_asyncio.fixture
async def teacher(make_user):
    return await make_user(UserRole.TEACHER, "Tina Teacher")


@pytest_asyncio.fixture
async def student(make_user):
    return await make_user(UserRole.STUDENT, "Sam Student")


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user(UserRole.ADMIN, "Ada Admin")


# ============================================================================
# Quizzes
# ============================================================================

def question_payload(
    stem: str,
    marks: int = 1,
    correct_index: int = 0,
    choices: list[str] | None = None,
    tags: list[str] | None = None,
) -> dict[str, Any]:
    return {
        "stem": stem,
        "choices": choices or ["Option A", "Option B", "Option C", "Option D"],
        "correctIndex": correct_index,
        "marks": marks,
        "topic_tags": tags if tags is not None else ["general"],
    }


@pytest.fixture
def sample_question():
    return question_payload


@pytest.fixture
def create_quiz(client):
    """Factory: create a quiz through the API and return its data block."""

    async def _create(
        headers: dict[str, str],
        marks: tuple[int, ...] = (5, 3),
        tags: list[str] | None = None,
        **settings: Any,
    ) -> dict[str, Any]:
        quiz_settings = {"is_published": True, "allow_retake": False, "shuffle_questions": False}
        quiz_settings.update(settings)
        response = await client.post(
            "/api/v1/quizzes",
            json={
                "title": "Fractions Check",
                "description": "Short quiz",
                "questions": [
                    question_payload(f"Question {i + 1}?", marks=m, correct_index=i % 4, tags=tags)
                    for i, m in enumerate(marks)
                ],
                "settings": quiz_settings,
            },
            headers=headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


@pytest.fixture
def start_attempt(client):
    """Factory: start an attempt and return its data block."""

    async def _start(quiz_id: str, headers: dict[str, str]) -> dict[str, Any]:
        response = await client.post("/api/v1/attempts/start", json={"quizId": quiz_id}, headers=headers)
        assert response.status_code == 200, response.text
        return response.json()["data"]

    return _start


@pytest.fixture
def sample_user_data() -> dict[str, Any]:
    """Sample user registration data."""
    return {
        "email": "pat.learner@school.edu",
        "password": "TestPass123",
        "name": "Pat Learner",
    }
