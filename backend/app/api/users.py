"""User registration and profile endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import get_current_user, get_policy
from backend.app.db import get_db
from backend.app.models.user import User
from backend.app.schemas.user import UserCreate, UserResponse, UserRolesUpdate
from backend.app.services import users as user_service
from backend.app.services.authorization import AuthorizationPolicy

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserResponse, status_code=201)
async def register_user(data: UserCreate, db: AsyncSession = Depends(get_db)) -> User:
    return await user_service.create_user(db, data.name, data.email, data.roles)


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)) -> User:
    return user


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)) -> User:
    return await user_service.get_user(db, user_id)


@router.put("/{user_id}/roles", response_model=UserResponse)
async def update_roles(
    user_id: str,
    data: UserRolesUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_policy),
) -> User:
    if not policy.is_admin(user):
        raise HTTPException(status_code=403, detail="Only administrators can change roles")
    return await user_service.set_roles(db, user_id, data.roles)
