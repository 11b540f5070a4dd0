"""Suggestions on ideas and challenge submissions."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.comments import tally_to_dict
from backend.app.api.deps import get_current_user, get_policy
from backend.app.db import get_db
from backend.app.models.engagement import Suggestion
from backend.app.models.user import User
from backend.app.schemas.engagement import (
    SuggestionCreate,
    SuggestionResponse,
    SuggestionStatusUpdate,
    VoteCreate,
    VoteResponse,
)
from backend.app.services import engagement
from backend.app.services.authorization import AuthorizationPolicy
from backend.app.services.engagement import VoteTargetKind
from backend.app.services.parents import ParentRef

router = APIRouter(tags=["suggestions"])


@router.get("/{parent_type}/{parent_id}/suggestions", response_model=list[SuggestionResponse])
async def list_suggestions(
    parent_type: str,
    parent_id: str,
    status: str | None = None,
    db: AsyncSession = Depends(get_db),
) -> list[Suggestion]:
    return await engagement.list_suggestions(
        db, ParentRef.from_segment(parent_type, parent_id), status
    )


@router.post(
    "/{parent_type}/{parent_id}/suggestions", response_model=SuggestionResponse, status_code=201
)
async def add_suggestion(
    parent_type: str,
    parent_id: str,
    data: SuggestionCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Suggestion:
    return await engagement.add_suggestion(
        db,
        ParentRef.from_segment(parent_type, parent_id),
        user,
        data.content,
        data.suggestion_type,
        data.priority,
    )


@router.post("/suggestions/{suggestion_id}/status", response_model=SuggestionResponse)
async def update_status(
    suggestion_id: str,
    data: SuggestionStatusUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_policy),
) -> Suggestion:
    return await engagement.update_suggestion_status(
        db, suggestion_id, user, data.status, data.notes, policy=policy
    )


@router.post("/suggestions/{suggestion_id}/vote", response_model=VoteResponse)
async def vote_suggestion(
    suggestion_id: str,
    data: VoteCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict:
    tally = await engagement.cast_vote(
        db, VoteTargetKind.SUGGESTION, suggestion_id, user.id, data.vote_type
    )
    return tally_to_dict(tally)


@router.get("/suggestions/{suggestion_id}/vote", response_model=VoteResponse)
async def get_suggestion_vote(
    suggestion_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict:
    tally = await engagement.vote_tally(db, VoteTargetKind.SUGGESTION, suggestion_id, user.id)
    return tally_to_dict(tally)
