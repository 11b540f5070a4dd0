"""Audit trail lookup for administrators."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import get_current_user, get_policy
from backend.app.db import get_db
from backend.app.errors import AuthorizationError
from backend.app.models.audit import AuditLog
from backend.app.models.user import User
from backend.app.schemas.audit import AuditLogResponse
from backend.app.services.audit import audit_logger
from backend.app.services.authorization import AuthorizationPolicy

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("/{entity_type}/{entity_id}", response_model=list[AuditLogResponse])
async def audit_trail(
    entity_type: str,
    entity_id: str,
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_policy),
) -> list[AuditLog]:
    if not policy.can_view_audit(user):
        raise AuthorizationError("Only administrators can view the audit trail")
    return await audit_logger.trail(db, entity_type, entity_id, limit)
