"""Collaboration invitations on ideas.

One row per (idea, collaborator) pair, never deleted. Status moves
pending -> accepted | declined by the invitee, and pending | accepted ->
removed by the author, the collaborator or an admin. Re-inviting someone
who declined or was removed re-opens their existing row as pending.
"""

import logging

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db import new_id, utcnow
from backend.app.errors import AuthorizationError, StateConflictError, ValidationError
from backend.app.models.collaboration import (
    ACTIVE_COLLABORATION_STATUSES,
    Collaboration,
    CollaborationRole,
    CollaborationStatus,
)
from backend.app.models.idea import Idea
from backend.app.models.user import User
from backend.app.services import gamification
from backend.app.services.audit import AuditAction, audit_logger
from backend.app.services.authorization import AuthorizationPolicy, default_policy
from backend.app.services.common import coerce_enum, get_or_raise
from backend.app.services.notifications import NotificationType, notify
from backend.app.services.stages import is_terminal

logger = logging.getLogger(__name__)

RESPONSES: dict[str, CollaborationStatus] = {
    "accept": CollaborationStatus.ACCEPTED,
    "accepted": CollaborationStatus.ACCEPTED,
    "decline": CollaborationStatus.DECLINED,
    "declined": CollaborationStatus.DECLINED,
}


def _parse_response(response: str) -> CollaborationStatus:
    status = RESPONSES.get(str(response).strip().lower())
    if status is None:
        raise ValidationError(f"Unknown response '{response}' (expected accept or decline)")
    return status


async def invite_collaborator(
    db: AsyncSession,
    idea_id: str,
    actor: User,
    collaborator_id: str,
    role: CollaborationRole | str = CollaborationRole.CONTRIBUTOR,
    message: str | None = None,
    *,
    policy: AuthorizationPolicy = default_policy,
) -> Collaboration:
    idea = await get_or_raise(db, Idea, idea_id, "Idea", for_update=True)
    if not policy.can_invite(actor, idea):
        raise AuthorizationError("Only the idea's author can invite collaborators")

    collaborator = await get_or_raise(db, User, collaborator_id, "User")
    if collaborator.id == idea.author_id:
        raise ValidationError("The idea's author cannot be invited as a collaborator")
    role = coerce_enum(CollaborationRole, role, "collaboration role")
    if is_terminal(idea.current_stage):
        raise StateConflictError(
            f"Ideas in stage {idea.current_stage} no longer accept collaborators"
        )

    result = await db.execute(
        select(Collaboration).where(
            Collaboration.idea_id == idea.id, Collaboration.collaborator_id == collaborator.id
        )
    )
    collaboration = result.scalar_one_or_none()
    if collaboration is not None and collaboration.is_active:
        raise StateConflictError(
            f"{collaborator.name} already has a {collaboration.status} collaboration on this idea"
        )

    now = utcnow()
    message = (message or "").strip() or None
    if collaboration is None:
        collaboration = Collaboration(
            id=new_id(),
            idea_id=idea.id,
            collaborator_id=collaborator.id,
            invited_by=actor.id,
            role=role.value,
            status=CollaborationStatus.PENDING.value,
            invitation_message=message,
            invited_at=now,
        )
        db.add(collaboration)
    else:
        collaboration.invited_by = actor.id
        collaboration.role = role.value
        collaboration.status = CollaborationStatus.PENDING.value
        collaboration.invitation_message = message
        collaboration.invited_at = now
        collaboration.responded_at = None
    await db.flush()

    await audit_logger.log(
        db,
        AuditAction.COLLABORATION_INVITED,
        "collaboration",
        collaboration.id,
        user_id=actor.id,
        after={"idea_id": idea.id, "collaborator_id": collaborator.id, "role": role.value},
    )
    await notify(
        db,
        collaborator.id,
        NotificationType.COLLABORATION_INVITATION,
        "Collaboration Invitation",
        f"{actor.name} invited you to collaborate on '{idea.title}' as {role.value}",
        related_type="collaboration",
        related_id=collaboration.id,
    )
    logger.info("Invited %s to idea %s as %s", collaborator.id, idea.id, role.value)
    return collaboration


async def respond_to_collaboration(
    db: AsyncSession,
    collaboration_id: str,
    actor: User,
    response: str,
    *,
    policy: AuthorizationPolicy = default_policy,
) -> Collaboration:
    """The invitee accepts or declines a pending invitation."""
    collaboration = await get_or_raise(
        db, Collaboration, collaboration_id, "Collaboration", for_update=True
    )
    status = _parse_response(response)
    if not policy.can_respond(actor, collaboration):
        raise AuthorizationError("Only the invited collaborator can respond to this invitation")
    if not collaboration.is_pending:
        raise StateConflictError(
            f"This invitation is {collaboration.status} and can no longer be answered"
        )

    collaboration.status = status.value
    collaboration.responded_at = utcnow()
    await db.flush()

    idea = await get_or_raise(db, Idea, collaboration.idea_id, "Idea")
    if status is CollaborationStatus.ACCEPTED:
        await gamification.award_points(
            db,
            collaboration.collaborator_id,
            "collaboration_accepted",
            description=f"Joined collaboration on idea: {idea.title}",
            related_type="collaboration",
            related_id=collaboration.id,
        )
        await gamification.check_achievements(db, collaboration.collaborator_id)
        await gamification.check_achievements(db, collaboration.invited_by)

    await audit_logger.log(
        db,
        AuditAction.COLLABORATION_RESPONDED,
        "collaboration",
        collaboration.id,
        user_id=actor.id,
        before={"status": CollaborationStatus.PENDING.value},
        after={"status": status.value},
    )
    await notify(
        db,
        collaboration.invited_by,
        NotificationType.COLLABORATION_RESPONSE,
        "Collaboration Response",
        f"{actor.name} {status.value} your invitation to collaborate on '{idea.title}'",
        related_type="collaboration",
        related_id=collaboration.id,
    )
    return collaboration


async def remove_collaboration(
    db: AsyncSession,
    collaboration_id: str,
    actor: User,
    *,
    policy: AuthorizationPolicy = default_policy,
) -> Collaboration:
    collaboration = await get_or_raise(
        db, Collaboration, collaboration_id, "Collaboration", for_update=True
    )
    idea = await get_or_raise(db, Idea, collaboration.idea_id, "Idea")
    if not policy.can_remove_collaboration(actor, collaboration, idea):
        raise AuthorizationError("You are not allowed to remove this collaboration")
    if not collaboration.is_active:
        raise StateConflictError(f"This collaboration is already {collaboration.status}")

    old_status = collaboration.status
    collaboration.status = CollaborationStatus.REMOVED.value
    await db.flush()

    await audit_logger.log(
        db,
        AuditAction.COLLABORATION_REMOVED,
        "collaboration",
        collaboration.id,
        user_id=actor.id,
        before={"status": old_status},
        after={"status": collaboration.status},
    )
    recipient = collaboration.collaborator_id
    if actor.id == collaboration.collaborator_id:
        recipient = idea.author_id
    if recipient != actor.id:
        await notify(
            db,
            recipient,
            NotificationType.COLLABORATION_REMOVED,
            "Collaboration Removed",
            f"A collaboration on '{idea.title}' was removed by {actor.name}",
            related_type="collaboration",
            related_id=collaboration.id,
        )
    return collaboration


async def list_collaborations(
    db: AsyncSession, idea_id: str, *, include_inactive: bool = False
) -> list[Collaboration]:
    await get_or_raise(db, Idea, idea_id, "Idea")
    query = select(Collaboration).where(Collaboration.idea_id == idea_id)
    if not include_inactive:
        query = query.where(Collaboration.status.in_(ACTIVE_COLLABORATION_STATUSES))
    result = await db.execute(query.order_by(Collaboration.invited_at))
    return list(result.scalars().all())


async def list_invitations(db: AsyncSession, user_id: str) -> list[Collaboration]:
    """Pending invitations waiting on ``user_id``, newest first."""
    result = await db.execute(
        select(Collaboration)
        .where(
            Collaboration.collaborator_id == user_id,
            Collaboration.status == CollaborationStatus.PENDING.value,
        )
        .order_by(desc(Collaboration.invited_at))
    )
    return list(result.scalars().all())
