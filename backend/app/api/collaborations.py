"""Collaboration invitation endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import get_current_user, get_policy
from backend.app.db import get_db
from backend.app.models.collaboration import Collaboration
from backend.app.models.user import User
from backend.app.schemas.collaboration import (
    CollaborationInvite,
    CollaborationRespond,
    CollaborationResponse,
)
from backend.app.services import collaborations as collaboration_service
from backend.app.services.authorization import AuthorizationPolicy

router = APIRouter(tags=["collaborations"])


@router.get("/collaborations/invitations", response_model=list[CollaborationResponse])
async def my_invitations(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> list[Collaboration]:
    return await collaboration_service.list_invitations(db, user.id)


@router.get("/ideas/{idea_id}/collaborations", response_model=list[CollaborationResponse])
async def list_collaborations(
    idea_id: str,
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db),
) -> list[Collaboration]:
    return await collaboration_service.list_collaborations(
        db, idea_id, include_inactive=include_inactive
    )


@router.post(
    "/ideas/{idea_id}/collaborations", response_model=CollaborationResponse, status_code=201
)
async def invite_collaborator(
    idea_id: str,
    data: CollaborationInvite,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_policy),
) -> Collaboration:
    return await collaboration_service.invite_collaborator(
        db, idea_id, user, data.collaborator_id, data.role, data.message, policy=policy
    )


@router.post("/collaborations/{collaboration_id}/respond", response_model=CollaborationResponse)
async def respond(
    collaboration_id: str,
    data: CollaborationRespond,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_policy),
) -> Collaboration:
    return await collaboration_service.respond_to_collaboration(
        db, collaboration_id, user, data.response, policy=policy
    )


@router.post("/collaborations/{collaboration_id}/remove", response_model=CollaborationResponse)
async def remove(
    collaboration_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_policy),
) -> Collaboration:
    return await collaboration_service.remove_collaboration(
        db, collaboration_id, user, policy=policy
    )
