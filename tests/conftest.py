import os
from datetime import UTC, datetime

# Configure before the application settings are loaded
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("OPENTELEMETRY_ENABLED", "false")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from learning_journal.agents.coach import CoachService
from learning_journal.agents.utils import QuotaCooldown
from learning_journal.database import Base, get_async_db, register_sqlite_functions
from learning_journal.graphql.schema import get_coach_service
from learning_journal.main import app
from learning_journal.models.learning_log import LearningLog

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
FAKE_LLM_REPLY = "**Weekly Snapshot**\n- Steady progress on python."


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite shared by every session in one test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    register_sqlite_functions(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_llm_factory():
    """Builds fake chat models that always answer with FAKE_LLM_REPLY."""
    created = []

    def factory(temperature: float):
        llm = FakeListChatModel(responses=[FAKE_LLM_REPLY])
        created.append((temperature, llm))
        return llm

    factory.created = created
    factory.reply = FAKE_LLM_REPLY
    return factory


@pytest.fixture
def coach_service(fake_llm_factory):
    return CoachService(api_key="sk-test", cooldown=QuotaCooldown(), llm_factory=fake_llm_factory)


@pytest_asyncio.fixture
async def test_client(session_factory, coach_service):
    """AsyncClient against the FastAPI app with the database and coach overridden."""

    async def override_get_async_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_async_db] = override_get_async_db
    app.dependency_overrides[get_coach_service] = lambda: coach_service
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def create_log(db_session):
    """Inserts a learning log directly, with an explicit createdAt when given."""

    async def _create_log(
        title: str = "Read about asyncio",
        reflection: str = "Event loops schedule coroutines.",
        tags: tuple[str, ...] = ("python",),
        time_spent: int = 30,
        source_url: str | None = None,
        created_at: datetime | None = None,
    ) -> LearningLog:
        log = LearningLog(
            title=title,
            reflection=reflection,
            time_spent=time_spent,
            source_url=source_url,
            created_at=created_at or datetime.now(UTC),
        )
        log.tags = list(tags)
        db_session.add(log)
        await db_session.commit()
        return log

    return _create_log


@pytest.fixture
def graphql(test_client):
    """Posts a GraphQL operation and returns the decoded response body."""

    async def _graphql(query: str, variables: dict | None = None) -> dict:
        response = await test_client.post(
            "/graphql", json={"query": query, "variables": variables or {}}
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _graphql
