"""Service-layer tests for collaboration invitations."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.errors import (
    AuthorizationError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from backend.app.models.collaboration import (
    ACTIVE_COLLABORATION_STATUSES,
    Collaboration,
    CollaborationStatus,
)
from backend.app.models.idea import Stage
from backend.app.services import collaborations, gamification
from tests.conftest import create_collaboration, create_idea, create_user


async def _active_rows(db: AsyncSession, idea_id: str, user_id: str) -> int:
    result = await db.execute(
        select(func.count(Collaboration.id)).where(
            Collaboration.idea_id == idea_id,
            Collaboration.collaborator_id == user_id,
            Collaboration.status.in_(ACTIVE_COLLABORATION_STATUSES),
        )
    )
    return result.scalar_one()


async def test_invite_accept_then_respond_again(db: AsyncSession):
    alice = await create_user(db, "alice")
    bob = await create_user(db, "bob")
    idea = await create_idea(db, alice)

    invite = await collaborations.invite_collaborator(db, idea.id, alice, bob.id, "contributor")
    assert invite.status == CollaborationStatus.PENDING.value
    assert [c.id for c in await collaborations.list_invitations(db, bob.id)] == [invite.id]

    accepted = await collaborations.respond_to_collaboration(db, invite.id, bob, "accept")
    assert accepted.status == CollaborationStatus.ACCEPTED.value
    assert accepted.responded_at is not None
    assert await gamification.total_points(db, bob.id) == gamification.POINTS[
        "collaboration_accepted"
    ]

    with pytest.raises(StateConflictError):
        await collaborations.respond_to_collaboration(db, invite.id, bob, "accept")


async def test_decline(db: AsyncSession):
    alice = await create_user(db, "alice")
    bob = await create_user(db, "bob")
    idea = await create_idea(db, alice)
    invite = await create_collaboration(db, idea, bob)

    declined = await collaborations.respond_to_collaboration(db, invite.id, bob, "declined")

    assert declined.status == CollaborationStatus.DECLINED.value
    assert await gamification.total_points(db, bob.id) == 0


async def test_only_invitee_can_respond(db: AsyncSession):
    alice = await create_user(db, "alice")
    bob = await create_user(db, "bob")
    admin = await create_user(db, "admin", roles=["administrator"])
    idea = await create_idea(db, alice)
    invite = await create_collaboration(db, idea, bob)

    for actor in (alice, admin):
        with pytest.raises(AuthorizationError):
            await collaborations.respond_to_collaboration(db, invite.id, actor, "accept")
    assert invite.status == CollaborationStatus.PENDING.value


async def test_respond_validates_input(db: AsyncSession):
    alice = await create_user(db, "alice")
    bob = await create_user(db, "bob")
    idea = await create_idea(db, alice)
    invite = await create_collaboration(db, idea, bob)

    with pytest.raises(ValidationError):
        await collaborations.respond_to_collaboration(db, invite.id, bob, "maybe")
    with pytest.raises(NotFoundError):
        await collaborations.respond_to_collaboration(db, "missing", bob, "accept")


async def test_duplicate_invite_is_a_conflict(db: AsyncSession):
    alice = await create_user(db, "alice")
    bob = await create_user(db, "bob")
    idea = await create_idea(db, alice)
    await collaborations.invite_collaborator(db, idea.id, alice, bob.id)

    with pytest.raises(StateConflictError):
        await collaborations.invite_collaborator(db, idea.id, alice, bob.id, "co_author")
    assert await _active_rows(db, idea.id, bob.id) == 1


async def test_reinvite_after_removal_reuses_row(db: AsyncSession):
    alice = await create_user(db, "alice")
    bob = await create_user(db, "bob")
    idea = await create_idea(db, alice)
    invite = await create_collaboration(db, idea, bob, status=CollaborationStatus.ACCEPTED)

    removed = await collaborations.remove_collaboration(db, invite.id, bob)
    assert removed.status == CollaborationStatus.REMOVED.value
    assert await _active_rows(db, idea.id, bob.id) == 0

    again = await collaborations.invite_collaborator(db, idea.id, alice, bob.id, "reviewer")
    assert again.id == invite.id
    assert again.status == CollaborationStatus.PENDING.value
    assert again.role == "reviewer"
    assert again.responded_at is None
    assert await _active_rows(db, idea.id, bob.id) == 1
    assert len(await collaborations.list_collaborations(db, idea.id)) == 1


async def test_invite_rules(db: AsyncSession):
    alice = await create_user(db, "alice")
    bob = await create_user(db, "bob")
    carol = await create_user(db, "carol")
    idea = await create_idea(db, alice)
    done = await create_idea(db, alice, title="Finished idea", stage=Stage.COMPLETED)

    with pytest.raises(AuthorizationError):
        await collaborations.invite_collaborator(db, idea.id, carol, bob.id)
    with pytest.raises(ValidationError):
        await collaborations.invite_collaborator(db, idea.id, alice, alice.id)
    with pytest.raises(NotFoundError):
        await collaborations.invite_collaborator(db, idea.id, alice, "ghost")
    with pytest.raises(ValidationError):
        await collaborations.invite_collaborator(db, idea.id, alice, bob.id, "sponsor")
    with pytest.raises(StateConflictError):
        await collaborations.invite_collaborator(db, done.id, alice, bob.id)


async def test_remove_permissions_and_state(db: AsyncSession):
    alice = await create_user(db, "alice")
    bob = await create_user(db, "bob")
    carol = await create_user(db, "carol", roles=["manager"])
    dev = await create_user(db, "dev", roles=["developer"])
    idea = await create_idea(db, alice)
    invite = await create_collaboration(db, idea, bob)

    with pytest.raises(AuthorizationError):
        await collaborations.remove_collaboration(db, invite.id, carol)

    await collaborations.remove_collaboration(db, invite.id, dev)
    assert invite.status == CollaborationStatus.REMOVED.value

    with pytest.raises(StateConflictError):
        await collaborations.remove_collaboration(db, invite.id, alice)
    history = await collaborations.list_collaborations(db, idea.id, include_inactive=True)
    assert [c.id for c in history] == [invite.id]
