from __future__ import annotations

from enum import Enum

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db import Base


class Role(str, Enum):
    USER = "user"
    MANAGER = "manager"
    SME = "sme"
    BOARD_MEMBER = "board_member"
    CHALLENGE_REVIEWER = "challenge_reviewer"
    ADMINISTRATOR = "administrator"
    DEVELOPER = "developer"


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, unique=True, nullable=False, index=True)
    # Role names as a JSON list, e.g. ["user", "manager"]
    roles: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    # Timestamps are stored as ISO 8601 strings (not datetime columns) throughout
    # the schema, so ordering and period filters compare lexicographically.
    created_at: Mapped[str] = mapped_column(String, nullable=False)

    def has_role(self, role: Role | str) -> bool:
        return Role(role).value in (self.roles or [])

    def has_any_role(self, *roles: Role | str) -> bool:
        return any(self.has_role(role) for role in roles)
