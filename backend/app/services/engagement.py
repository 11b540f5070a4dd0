"""Comments, suggestions and the up/down votes on both.

Vote tallies on ``Comment`` and ``Suggestion`` are a cache of the vote tables.
``cast_vote`` locks the target row, applies the vote change and rewrites both
counters from COUNT queries, all inside the caller's transaction, so two
concurrent votes on the same target cannot overwrite each other's tally.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from sqlalchemy import desc, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db import new_id, utcnow
from backend.app.errors import (
    AuthorizationError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from backend.app.models.engagement import (
    Comment,
    CommentVote,
    Suggestion,
    SuggestionPriority,
    SuggestionStatus,
    SuggestionType,
    SuggestionVote,
    VoteType,
)
from backend.app.models.user import User
from backend.app.services.audit import AuditAction, audit_logger
from backend.app.services.authorization import AuthorizationPolicy, default_policy
from backend.app.services.common import clean_text, coerce_enum, get_or_raise
from backend.app.services.notifications import NotificationType, notify
from backend.app.services.parents import ParentRef, resolve_parent

logger = logging.getLogger(__name__)

COMMENT_LIMITS = (3, 2000)
SUGGESTION_LIMITS = (10, 5000)

SUGGESTION_TRANSITIONS: dict[SuggestionStatus, frozenset[SuggestionStatus]] = {
    SuggestionStatus.PENDING: frozenset({SuggestionStatus.ACCEPTED, SuggestionStatus.REJECTED}),
    SuggestionStatus.ACCEPTED: frozenset({SuggestionStatus.IMPLEMENTED}),
}


# -- Votes --


class VoteTargetKind(str, Enum):
    COMMENT = "comment"
    SUGGESTION = "suggestion"


@dataclass(frozen=True)
class VoteTable:
    label: str
    model: type[Comment] | type[Suggestion]
    vote_model: type[CommentVote] | type[SuggestionVote]
    target_column: str


VOTE_TABLES: dict[VoteTargetKind, VoteTable] = {
    VoteTargetKind.COMMENT: VoteTable("Comment", Comment, CommentVote, "comment_id"),
    VoteTargetKind.SUGGESTION: VoteTable(
        "Suggestion", Suggestion, SuggestionVote, "suggestion_id"
    ),
}


@dataclass
class VoteTally:
    upvotes: int
    downvotes: int
    user_vote: VoteType | None

    @property
    def net_score(self) -> int:
        return self.upvotes - self.downvotes


async def _existing_vote(
    db: AsyncSession, table: VoteTable, target_id: str, user_id: str
) -> CommentVote | SuggestionVote | None:
    target_column = getattr(table.vote_model, table.target_column)
    result = await db.execute(
        select(table.vote_model).where(
            target_column == target_id, table.vote_model.user_id == user_id
        )
    )
    return result.scalar_one_or_none()


async def cast_vote(
    db: AsyncSession,
    target_kind: VoteTargetKind | str,
    target_id: str,
    user_id: str,
    vote_type: VoteType | str,
) -> VoteTally:
    """Toggle ``user_id``'s vote on a comment or suggestion.

    No vote yet: record it. Same type again: remove it. Opposite type: flip it.
    A second vote by the same user racing this one trips the unique constraint
    on the vote table and surfaces as ``StateConflictError``; the caller's
    transaction must then be rolled back.
    """
    table = VOTE_TABLES[coerce_enum(VoteTargetKind, target_kind, "vote target")]
    vote_type = coerce_enum(VoteType, vote_type, "vote type")

    target = await get_or_raise(db, table.model, target_id, table.label, for_update=True)
    if isinstance(target, Comment) and target.deleted_at is not None:
        raise NotFoundError.for_entity(table.label, target_id)

    existing = await _existing_vote(db, table, target.id, user_id)
    user_vote: VoteType | None = vote_type
    if existing is None:
        db.add(
            table.vote_model(
                id=new_id(),
                user_id=user_id,
                vote_type=vote_type.value,
                created_at=utcnow(),
                **{table.target_column: target.id},
            )
        )
    elif existing.vote_type == vote_type.value:
        await db.delete(existing)
        user_vote = None
    else:
        existing.vote_type = vote_type.value
    try:
        await db.flush()
    except IntegrityError as exc:
        logger.info("Concurrent vote by %s on %s %s", user_id, table.label.lower(), target_id)
        raise StateConflictError(
            f"Your vote on this {table.label.lower()} changed while it was being recorded; "
            "try again"
        ) from exc

    target_column = getattr(table.vote_model, table.target_column)
    counts = await db.execute(
        select(table.vote_model.vote_type, func.count(table.vote_model.id))
        .where(target_column == target.id)
        .group_by(table.vote_model.vote_type)
    )
    tally = dict(counts.all())
    target.upvotes_count = tally.get(VoteType.UPVOTE.value, 0)
    target.downvotes_count = tally.get(VoteType.DOWNVOTE.value, 0)
    await db.flush()

    logger.debug(
        "Vote on %s %s by %s: %s (+%d/-%d)",
        table.label.lower(),
        target.id,
        user_id,
        user_vote.value if user_vote else "removed",
        target.upvotes_count,
        target.downvotes_count,
    )
    return VoteTally(
        upvotes=target.upvotes_count, downvotes=target.downvotes_count, user_vote=user_vote
    )


async def vote_tally(
    db: AsyncSession, target_kind: VoteTargetKind | str, target_id: str, user_id: str
) -> VoteTally:
    """Current counters on a target and ``user_id``'s vote on it."""
    table = VOTE_TABLES[coerce_enum(VoteTargetKind, target_kind, "vote target")]
    target = await get_or_raise(db, table.model, target_id, table.label)
    if isinstance(target, Comment) and target.deleted_at is not None:
        raise NotFoundError.for_entity(table.label, target_id)
    existing = await _existing_vote(db, table, target.id, user_id)
    return VoteTally(
        upvotes=target.upvotes_count,
        downvotes=target.downvotes_count,
        user_vote=VoteType(existing.vote_type) if existing else None,
    )


# -- Comments --


@dataclass
class CommentThread:
    comment: Comment
    replies: list[Comment] = field(default_factory=list)


async def _live_comment(
    db: AsyncSession, comment_id: str, *, for_update: bool = False
) -> Comment:
    comment = await get_or_raise(db, Comment, comment_id, "Comment", for_update=for_update)
    if comment.deleted_at is not None:
        raise NotFoundError.for_entity("Comment", comment_id)
    return comment


async def add_comment(
    db: AsyncSession,
    parent: ParentRef,
    author: User,
    content: str,
    reply_to_id: str | None = None,
) -> Comment:
    """Post a comment, or a reply when ``reply_to_id`` is given.

    Threads are one level deep: replying to a reply attaches to its root.
    """
    target = await resolve_parent(db, parent)
    content = clean_text(content, "Comment", *COMMENT_LIMITS)

    root: Comment | None = None
    if reply_to_id is not None:
        replied = await _live_comment(db, reply_to_id)
        if replied.parent_type != parent.kind.value or replied.parent_id != parent.id:
            raise ValidationError("Replies must belong to the same discussion")
        root = await _live_comment(db, replied.reply_to_id) if replied.reply_to_id else replied

    comment = Comment(
        id=new_id(),
        parent_type=parent.kind.value,
        parent_id=parent.id,
        author_id=author.id,
        content=content,
        reply_to_id=root.id if root else None,
        upvotes_count=0,
        downvotes_count=0,
        is_edited=False,
        created_at=utcnow(),
    )
    db.add(comment)
    await db.flush()

    await audit_logger.log(
        db,
        AuditAction.COMMENT_ADDED,
        "comment",
        comment.id,
        user_id=author.id,
        after={"parent_type": parent.kind.value, "parent_id": parent.id},
    )
    recipients = {target.author_id}
    if root is not None:
        recipients.add(root.author_id)
    recipients.discard(author.id)
    await notify(
        db,
        sorted(recipients),
        NotificationType.NEW_COMMENT,
        "New Comment",
        f"{author.name} commented on '{target.title}'",
        related_type=parent.kind.value,
        related_id=parent.id,
    )
    return comment


async def edit_comment(
    db: AsyncSession,
    comment_id: str,
    actor: User,
    content: str,
    *,
    policy: AuthorizationPolicy = default_policy,
) -> Comment:
    comment = await _live_comment(db, comment_id, for_update=True)
    if not policy.can_edit_comment(actor, comment):
        raise AuthorizationError("You can only edit your own comments")
    content = clean_text(content, "Comment", *COMMENT_LIMITS)

    before = comment.content
    comment.content = content
    comment.is_edited = True
    comment.edited_at = utcnow()
    await db.flush()

    await audit_logger.log(
        db,
        AuditAction.COMMENT_UPDATED,
        "comment",
        comment.id,
        user_id=actor.id,
        before={"content": before},
        after={"content": content},
    )
    return comment


async def delete_comment(
    db: AsyncSession,
    comment_id: str,
    actor: User,
    *,
    policy: AuthorizationPolicy = default_policy,
) -> Comment:
    """Soft delete; the row and its votes stay."""
    comment = await _live_comment(db, comment_id, for_update=True)
    if not policy.can_delete_comment(actor, comment):
        raise AuthorizationError("You can only delete your own comments")

    comment.deleted_at = utcnow()
    await db.flush()
    await audit_logger.log(
        db, AuditAction.COMMENT_DELETED, "comment", comment.id, user_id=actor.id
    )
    return comment


async def list_comments(db: AsyncSession, parent: ParentRef) -> list[CommentThread]:
    """Live comments as threads, oldest first. Replies to a deleted root are hidden."""
    await resolve_parent(db, parent)
    result = await db.execute(
        select(Comment)
        .where(
            Comment.parent_type == parent.kind.value,
            Comment.parent_id == parent.id,
            Comment.deleted_at.is_(None),
        )
        .order_by(Comment.created_at)
    )
    threads: dict[str, CommentThread] = {}
    replies: list[Comment] = []
    for comment in result.scalars().all():
        if comment.reply_to_id is None:
            threads[comment.id] = CommentThread(comment)
        else:
            replies.append(comment)
    for reply in replies:
        if reply.reply_to_id in threads:
            threads[reply.reply_to_id].replies.append(reply)
    return list(threads.values())


# -- Suggestions --


async def add_suggestion(
    db: AsyncSession,
    parent: ParentRef,
    author: User,
    content: str,
    suggestion_type: SuggestionType | str,
    priority: SuggestionPriority | str = SuggestionPriority.MEDIUM,
) -> Suggestion:
    target = await resolve_parent(db, parent)
    content = clean_text(content, "Suggestion", *SUGGESTION_LIMITS)
    suggestion_type = coerce_enum(SuggestionType, suggestion_type, "suggestion type")
    priority = coerce_enum(SuggestionPriority, priority, "priority")

    suggestion = Suggestion(
        id=new_id(),
        parent_type=parent.kind.value,
        parent_id=parent.id,
        author_id=author.id,
        content=content,
        suggestion_type=suggestion_type.value,
        priority=priority.value,
        status=SuggestionStatus.PENDING.value,
        upvotes_count=0,
        downvotes_count=0,
        created_at=utcnow(),
    )
    db.add(suggestion)
    await db.flush()

    await audit_logger.log(
        db,
        AuditAction.SUGGESTION_ADDED,
        "suggestion",
        suggestion.id,
        user_id=author.id,
        after={
            "parent_type": parent.kind.value,
            "parent_id": parent.id,
            "suggestion_type": suggestion_type.value,
        },
    )
    if target.author_id != author.id:
        await notify(
            db,
            target.author_id,
            NotificationType.NEW_SUGGESTION,
            "New Suggestion",
            f"{author.name} suggested a {suggestion_type.value} for '{target.title}'",
            related_type="suggestion",
            related_id=suggestion.id,
        )
    return suggestion


async def list_suggestions(
    db: AsyncSession, parent: ParentRef, status: SuggestionStatus | str | None = None
) -> list[Suggestion]:
    """Suggestions on ``parent``, best net score first."""
    await resolve_parent(db, parent)
    query = select(Suggestion).where(
        Suggestion.parent_type == parent.kind.value, Suggestion.parent_id == parent.id
    )
    if status is not None:
        query = query.where(
            Suggestion.status == coerce_enum(SuggestionStatus, status, "status").value
        )
    result = await db.execute(
        query.order_by(
            desc(Suggestion.upvotes_count - Suggestion.downvotes_count),
            desc(Suggestion.created_at),
        )
    )
    return list(result.scalars().all())


async def update_suggestion_status(
    db: AsyncSession,
    suggestion_id: str,
    actor: User,
    status: SuggestionStatus | str,
    notes: str | None = None,
    *,
    policy: AuthorizationPolicy = default_policy,
) -> Suggestion:
    """Move a suggestion along pending -> accepted|rejected, accepted -> implemented."""
    suggestion = await get_or_raise(db, Suggestion, suggestion_id, "Suggestion", for_update=True)
    status = coerce_enum(SuggestionStatus, status, "status")

    parent = await resolve_parent(
        db, ParentRef.parse(suggestion.parent_type, suggestion.parent_id)
    )
    if not policy.can_update_suggestion_status(actor, parent.author_id):
        raise AuthorizationError("You are not allowed to update this suggestion's status")

    current = SuggestionStatus(suggestion.status)
    if status not in SUGGESTION_TRANSITIONS.get(current, frozenset()):
        raise StateConflictError(
            f"A suggestion cannot move from {current.value} to {status.value}"
        )

    now = utcnow()
    suggestion.status = status.value
    if status is SuggestionStatus.IMPLEMENTED:
        suggestion.implemented_at = now
    else:
        suggestion.reviewed_by = actor.id
        suggestion.reviewed_at = now
    if notes is not None and notes.strip():
        suggestion.implementation_notes = notes.strip()
    await db.flush()

    await audit_logger.log(
        db,
        AuditAction.SUGGESTION_STATUS_CHANGE,
        "suggestion",
        suggestion.id,
        user_id=actor.id,
        before={"status": current.value},
        after={"status": status.value, "implementation_notes": suggestion.implementation_notes},
    )
    if suggestion.author_id != actor.id:
        await notify(
            db,
            suggestion.author_id,
            NotificationType.SUGGESTION_STATUS,
            "Suggestion Updated",
            f"Your suggestion on '{parent.title}' was marked {status.value}",
            related_type="suggestion",
            related_id=suggestion.id,
        )
    logger.info("Suggestion %s: %s -> %s", suggestion.id, current.value, status.value)
    return suggestion
