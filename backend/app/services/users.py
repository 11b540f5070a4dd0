"""User records and role assignment."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db import new_id, utcnow
from backend.app.errors import StateConflictError
from backend.app.models.user import Role, User
from backend.app.services.common import clean_text, coerce_enum, get_or_raise

logger = logging.getLogger(__name__)


async def create_user(
    db: AsyncSession, name: str, email: str, roles: list[str] | None = None
) -> User:
    email = email.strip().lower()
    existing = await db.execute(select(User).where(User.email == email))
    if existing.scalar_one_or_none():
        raise StateConflictError(f"A user with email {email} already exists")

    role_values = [coerce_enum(Role, role, "role").value for role in (roles or [Role.USER])]
    user = User(
        id=new_id(),
        name=clean_text(name, "Name", 1, 120),
        email=email,
        roles=list(dict.fromkeys(role_values)),
        created_at=utcnow(),
    )
    db.add(user)
    await db.flush()
    logger.info("Created user %s with roles %s", user.id, user.roles)
    return user


async def get_user(db: AsyncSession, user_id: str) -> User:
    return await get_or_raise(db, User, user_id, "User")


async def set_roles(db: AsyncSession, user_id: str, roles: list[str]) -> User:
    user = await get_user(db, user_id)
    user.roles = list(dict.fromkeys(coerce_enum(Role, role, "role").value for role in roles))
    await db.flush()
    return user
