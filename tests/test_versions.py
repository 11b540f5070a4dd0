"""Tests for idea version snapshots, restore and compare."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.errors import AuthorizationError, StateConflictError, ValidationError
from backend.app.models.idea import IdeaVersion, Stage
from backend.app.services import ideas, versions
from tests.conftest import create_category, create_idea, create_user


async def _current_count(db: AsyncSession, idea_id: str) -> int:
    result = await db.execute(
        select(func.count(IdeaVersion.id)).where(
            IdeaVersion.idea_id == idea_id, IdeaVersion.is_current.is_(True)
        )
    )
    return result.scalar_one()


async def test_create_idea_records_version_one(db: AsyncSession):
    author = await create_user(db, "author")
    idea = await ideas.create_idea(
        db, author, "Reusable formwork", "Switch to modular formwork we can reuse."
    )

    history = await versions.list_versions(db, idea.id)
    assert [v.version_number for v in history] == [1]
    assert history[0].is_current
    assert history[0].notes == "Initial version"


async def test_version_numbers_are_monotonic_with_one_current(db: AsyncSession):
    author = await create_user(db, "author")
    idea = await create_idea(db, author)

    for expected in (1, 2, 3):
        version = await versions.create_version(db, idea.id, author.id, f"snapshot {expected}")
        assert version.version_number == expected
        assert await _current_count(db, idea.id) == 1

    current = await versions.current_version(db, idea.id)
    assert current is not None
    assert current.version_number == 3


async def test_update_idea_creates_version(db: AsyncSession):
    author = await create_user(db, "author")
    idea = await ideas.create_idea(
        db, author, "Reusable formwork", "Switch to modular formwork we can reuse."
    )

    await ideas.update_idea(db, idea.id, author, title="Reusable steel formwork", note="Title")

    history = await versions.list_versions(db, idea.id)
    assert [v.version_number for v in history] == [2, 1]
    assert history[0].title == "Reusable steel formwork"
    assert history[0].notes == "Title"
    assert await _current_count(db, idea.id) == 1


async def test_restore_reuses_existing_row(db: AsyncSession):
    author = await create_user(db, "author")
    idea = await ideas.create_idea(
        db, author, "Reusable formwork", "Switch to modular formwork we can reuse."
    )
    await ideas.update_idea(db, idea.id, author, title="Reusable steel formwork")
    first = (await versions.list_versions(db, idea.id))[-1]

    restored = await versions.restore_version(db, first.id, author)

    assert restored.title == "Reusable formwork"
    history = await versions.list_versions(db, idea.id)
    assert len(history) == 2
    current = await versions.current_version(db, idea.id)
    assert current is not None
    assert current.id == first.id
    assert await _current_count(db, idea.id) == 1


async def test_restore_requires_author_and_draft(db: AsyncSession):
    author = await create_user(db, "author")
    other = await create_user(db, "other", roles=["manager"])
    idea = await create_idea(db, author)
    version = await versions.create_version(db, idea.id, author.id)

    with pytest.raises(AuthorizationError):
        await versions.restore_version(db, version.id, other)

    idea.current_stage = Stage.SME_REVIEW.value
    await db.flush()
    with pytest.raises(StateConflictError):
        await versions.restore_version(db, version.id, author)


async def test_compare_reports_changed_fields(db: AsyncSession):
    author = await create_user(db, "author")
    safety = await create_category(db, "Quality & Safety Innovation")
    idea = await ideas.create_idea(
        db, author, "Reusable formwork", "Switch to modular formwork we can reuse."
    )
    await ideas.update_idea(db, idea.id, author, category_id=safety.id)
    await ideas.update_idea(db, idea.id, author, title="Reusable steel formwork")
    v3, v2, v1 = await versions.list_versions(db, idea.id)

    assert await versions.compare_versions(db, v1.id, v2.id) == {
        "category": {"old": None, "new": "Quality & Safety Innovation"}
    }
    assert await versions.compare_versions(db, v2.id, v3.id) == {
        "title": {"old": "Reusable formwork", "new": "Reusable steel formwork"}
    }
    assert await versions.compare_versions(db, v3.id, v3.id) == {}


async def test_compare_rejects_versions_of_different_ideas(db: AsyncSession):
    author = await create_user(db, "author")
    first = await versions.create_version(db, (await create_idea(db, author)).id, author.id)
    second = await versions.create_version(
        db, (await create_idea(db, author, title="Another idea")).id, author.id
    )

    with pytest.raises(ValidationError):
        await versions.compare_versions(db, first.id, second.id)


async def test_edits_blocked_after_submission(db: AsyncSession):
    author = await create_user(db, "author")
    idea = await ideas.create_idea(
        db, author, "Reusable formwork", "Switch to modular formwork we can reuse."
    )
    await ideas.submit_idea(db, idea.id, author)

    with pytest.raises(StateConflictError):
        await ideas.update_idea(db, idea.id, author, title="Sneaky late edit")
    with pytest.raises(StateConflictError):
        await ideas.submit_idea(db, idea.id, author)
