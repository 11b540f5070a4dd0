from enum import Enum

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db import Base


class CollaborationRole(str, Enum):
    CONTRIBUTOR = "contributor"
    CO_AUTHOR = "co_author"
    REVIEWER = "reviewer"


class CollaborationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    REMOVED = "removed"


ACTIVE_COLLABORATION_STATUSES = (
    CollaborationStatus.PENDING.value,
    CollaborationStatus.ACCEPTED.value,
)


class Collaboration(Base):
    __tablename__ = "collaborations"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    idea_id: Mapped[str] = mapped_column(String, ForeignKey("ideas.id"), nullable=False)
    collaborator_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    invited_by: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    role: Mapped[str] = mapped_column(
        String, nullable=False, default=CollaborationRole.CONTRIBUTOR.value
    )
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=CollaborationStatus.PENDING.value
    )
    invitation_message: Mapped[str | None] = mapped_column(String, nullable=True)
    invited_at: Mapped[str] = mapped_column(String, nullable=False)
    responded_at: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        # Rows are never deleted; a declined or removed row is re-opened on re-invite
        UniqueConstraint("idea_id", "collaborator_id", name="uq_collaborations_pair"),
        Index("idx_collaborations_collaborator_status", "collaborator_id", "status"),
    )

    @property
    def is_pending(self) -> bool:
        return self.status == CollaborationStatus.PENDING.value

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_COLLABORATION_STATUSES
