"""Vote tallies under concurrent sessions.

These use a file-backed database so each session gets its own connection,
unlike the shared in-memory connection in ``conftest``.
"""

import asyncio
from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from backend.app.db import Base
from backend.app.errors import StateConflictError
from backend.app.models.engagement import Comment, CommentVote
from backend.app.services import engagement
from backend.app.services.engagement import VoteTally, VoteTargetKind
from tests.conftest import create_comment, create_idea, create_user


@pytest.fixture
async def file_sessions(tmp_path: Path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'votes.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


async def _vote(
    sessions: async_sessionmaker[AsyncSession], comment_id: str, user_id: str
) -> VoteTally | StateConflictError:
    async with sessions() as session:
        try:
            tally = await engagement.cast_vote(
                session, VoteTargetKind.COMMENT, comment_id, user_id, "upvote"
            )
            await session.commit()
            return tally
        except StateConflictError as exc:
            await session.rollback()
            return exc


async def _stored(sessions: async_sessionmaker[AsyncSession], comment_id: str) -> tuple[int, int]:
    """(upvotes_count on the comment, CommentVote rows) as committed."""
    async with sessions() as session:
        comment = await session.get(Comment, comment_id)
        rows = await session.execute(
            select(func.count(CommentVote.id)).where(CommentVote.comment_id == comment_id)
        )
        return comment.upvotes_count, rows.scalar_one()


async def test_concurrent_voters_keep_tally_consistent(
    file_sessions: async_sessionmaker[AsyncSession],
):
    async with file_sessions() as session:
        author = await create_user(session, "author")
        voters = [await create_user(session, f"voter{i}") for i in range(6)]
        comment = await create_comment(session, author, (await create_idea(session, author)).id)
        await session.commit()

    results = await asyncio.gather(*(_vote(file_sessions, comment.id, v.id) for v in voters))

    assert all(isinstance(result, VoteTally) for result in results)
    assert await _stored(file_sessions, comment.id) == (6, 6)


async def test_same_user_racing_itself_never_corrupts_tally(
    file_sessions: async_sessionmaker[AsyncSession],
):
    async with file_sessions() as session:
        author = await create_user(session, "author")
        voter = await create_user(session, "voter")
        comment = await create_comment(session, author, (await create_idea(session, author)).id)
        await session.commit()

    results = await asyncio.gather(*(_vote(file_sessions, comment.id, voter.id) for _ in range(2)))

    assert all(isinstance(r, VoteTally | StateConflictError) for r in results)
    count, rows = await _stored(file_sessions, comment.id)
    assert count == rows
    assert rows <= 1


async def test_duplicate_vote_insert_is_a_conflict(db: AsyncSession):
    author = await create_user(db, "author")
    voter = await create_user(db, "voter")
    comment = await create_comment(db, author, (await create_idea(db, author)).id)
    await engagement.cast_vote(db, "comment", comment.id, voter.id, "upvote")
    await db.commit()

    # A stale read: the earlier vote is committed but this call does not see it
    with patch.object(engagement, "_existing_vote", AsyncMock(return_value=None)):
        with pytest.raises(StateConflictError):
            await engagement.cast_vote(db, "comment", comment.id, voter.id, "upvote")
    await db.rollback()

    await db.refresh(comment)
    assert comment.upvotes_count == 1
    rows = await db.execute(
        select(func.count(CommentVote.id)).where(CommentVote.comment_id == comment.id)
    )
    assert rows.scalar_one() == 1
