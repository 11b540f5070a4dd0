"""Shared fixtures and factory helpers.

Every test gets a fresh in-memory SQLite database. ``StaticPool`` keeps the
single connection alive so the ``db`` fixture and the sessions the API opens
through the ``get_db`` override all see the same data. Factories insert rows
directly and only flush: commit before calling the API.
"""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

import backend.app.models  # noqa: F401 — register every table on Base.metadata
from backend.app.db import Base, get_db, new_id, utcnow
from backend.app.main import app
from backend.app.models.category import Category
from backend.app.models.collaboration import Collaboration, CollaborationStatus
from backend.app.models.engagement import Comment, ParentKind, Suggestion, SuggestionStatus
from backend.app.models.idea import ChallengeStatus, ChallengeSubmission, Idea, Stage
from backend.app.models.user import User

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    async def _get_test_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_test_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def as_user(user: User) -> dict[str, str]:
    """Request headers identifying ``user``."""
    return {"X-User-Id": user.id}


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


async def create_user(
    db: AsyncSession,
    name: str = "alice",
    roles: list[str] | None = None,
    email: str | None = None,
) -> User:
    user = User(
        id=new_id(),
        name=name,
        email=email or f"{name.lower().replace(' ', '.')}@example.com",
        roles=roles or ["user"],
        created_at=utcnow(),
    )
    db.add(user)
    await db.flush()
    return user


async def create_category(db: AsyncSession, name: str = "Process Automation") -> Category:
    category = Category(id=new_id(), name=name, description=f"{name} ideas")
    db.add(category)
    await db.flush()
    return category


async def create_idea(
    db: AsyncSession,
    author: User,
    title: str = "Automate timesheet approvals",
    description: str = "Route weekly timesheets through an automatic approval rule.",
    stage: Stage = Stage.DRAFT,
    category_id: str | None = None,
) -> Idea:
    now = utcnow()
    idea = Idea(
        id=new_id(),
        title=title,
        description=description,
        author_id=author.id,
        category_id=category_id,
        current_stage=stage.value,
        created_at=now,
        submitted_at=None if stage is Stage.DRAFT else now,
        last_stage_change=None if stage is Stage.DRAFT else now,
    )
    db.add(idea)
    await db.flush()
    return idea


async def create_challenge_submission(
    db: AsyncSession,
    author: User,
    title: str = "Drone site surveys",
    status: ChallengeStatus = ChallengeStatus.SUBMITTED,
) -> ChallengeSubmission:
    submission = ChallengeSubmission(
        id=new_id(),
        challenge_title="Safer sites 2026",
        title=title,
        description="Survey active sites weekly with a drone to spot hazards early.",
        author_id=author.id,
        status=status.value,
        created_at=utcnow(),
    )
    db.add(submission)
    await db.flush()
    return submission


async def create_comment(
    db: AsyncSession,
    author: User,
    parent_id: str,
    content: str = "Nice idea, worth a pilot.",
    parent_type: ParentKind = ParentKind.IDEA,
    reply_to_id: str | None = None,
) -> Comment:
    comment = Comment(
        id=new_id(),
        parent_type=parent_type.value,
        parent_id=parent_id,
        author_id=author.id,
        content=content,
        reply_to_id=reply_to_id,
        upvotes_count=0,
        downvotes_count=0,
        is_edited=False,
        created_at=utcnow(),
    )
    db.add(comment)
    await db.flush()
    return comment


async def create_suggestion(
    db: AsyncSession,
    author: User,
    parent_id: str,
    content: str = "Add an escalation path for rejected timesheets.",
    status: SuggestionStatus = SuggestionStatus.PENDING,
    parent_type: ParentKind = ParentKind.IDEA,
) -> Suggestion:
    suggestion = Suggestion(
        id=new_id(),
        parent_type=parent_type.value,
        parent_id=parent_id,
        author_id=author.id,
        content=content,
        suggestion_type="improvement",
        priority="medium",
        status=status.value,
        upvotes_count=0,
        downvotes_count=0,
        created_at=utcnow(),
    )
    db.add(suggestion)
    await db.flush()
    return suggestion


async def create_collaboration(
    db: AsyncSession,
    idea: Idea,
    collaborator: User,
    status: CollaborationStatus = CollaborationStatus.PENDING,
    role: str = "contributor",
) -> Collaboration:
    collaboration = Collaboration(
        id=new_id(),
        idea_id=idea.id,
        collaborator_id=collaborator.id,
        invited_by=idea.author_id,
        role=role,
        status=status.value,
        invited_at=utcnow(),
    )
    db.add(collaboration)
    await db.flush()
    return collaboration
