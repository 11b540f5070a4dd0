"""Comment threads on ideas and challenge submissions.

``parent_type`` in the path is a plural route segment (``ideas`` or
``challenge-submissions``).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import get_current_user, get_policy
from backend.app.db import get_db
from backend.app.models.engagement import Comment
from backend.app.models.user import User
from backend.app.schemas.engagement import (
    CommentCreate,
    CommentResponse,
    CommentUpdate,
    VoteCreate,
    VoteResponse,
)
from backend.app.services import engagement
from backend.app.services.authorization import AuthorizationPolicy
from backend.app.services.engagement import VoteTally, VoteTargetKind
from backend.app.services.parents import ParentRef

router = APIRouter(tags=["comments"])


def _comment_to_dict(comment: Comment, replies: list[Comment] | None = None) -> dict:
    return {
        "id": comment.id,
        "parent_type": comment.parent_type,
        "parent_id": comment.parent_id,
        "author_id": comment.author_id,
        "content": comment.content,
        "reply_to_id": comment.reply_to_id,
        "upvotes_count": comment.upvotes_count,
        "downvotes_count": comment.downvotes_count,
        "net_score": comment.net_score,
        "is_edited": comment.is_edited,
        "edited_at": comment.edited_at,
        "created_at": comment.created_at,
        "replies": [_comment_to_dict(reply) for reply in replies or []],
    }


def tally_to_dict(tally: VoteTally) -> dict:
    return {
        "upvotes": tally.upvotes,
        "downvotes": tally.downvotes,
        "net_score": tally.net_score,
        "user_vote": tally.user_vote.value if tally.user_vote else None,
    }


@router.get("/{parent_type}/{parent_id}/comments", response_model=list[CommentResponse])
async def list_comments(
    parent_type: str, parent_id: str, db: AsyncSession = Depends(get_db)
) -> list[dict]:
    threads = await engagement.list_comments(db, ParentRef.from_segment(parent_type, parent_id))
    return [_comment_to_dict(thread.comment, thread.replies) for thread in threads]


@router.post(
    "/{parent_type}/{parent_id}/comments", response_model=CommentResponse, status_code=201
)
async def add_comment(
    parent_type: str,
    parent_id: str,
    data: CommentCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict:
    comment = await engagement.add_comment(
        db,
        ParentRef.from_segment(parent_type, parent_id),
        user,
        data.content,
        data.reply_to_id,
    )
    return _comment_to_dict(comment)


@router.patch("/comments/{comment_id}", response_model=CommentResponse)
async def edit_comment(
    comment_id: str,
    data: CommentUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_policy),
) -> dict:
    comment = await engagement.edit_comment(db, comment_id, user, data.content, policy=policy)
    return _comment_to_dict(comment)


@router.delete("/comments/{comment_id}", status_code=204)
async def delete_comment(
    comment_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_policy),
) -> None:
    await engagement.delete_comment(db, comment_id, user, policy=policy)


@router.post("/comments/{comment_id}/vote", response_model=VoteResponse)
async def vote_comment(
    comment_id: str,
    data: VoteCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict:
    tally = await engagement.cast_vote(
        db, VoteTargetKind.COMMENT, comment_id, user.id, data.vote_type
    )
    return tally_to_dict(tally)


@router.get("/comments/{comment_id}/vote", response_model=VoteResponse)
async def get_comment_vote(
    comment_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict:
    tally = await engagement.vote_tally(db, VoteTargetKind.COMMENT, comment_id, user.id)
    return tally_to_dict(tally)
