"""Typed references to the things comments and suggestions hang off.

A ``ParentRef`` is stored as the ``(parent_type, parent_id)`` column pair. The
registry below is the only place that maps a ``ParentKind`` to a model, so
adding a new commentable entity means adding one entry here.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.errors import ValidationError
from backend.app.models.engagement import ParentKind
from backend.app.models.idea import ChallengeSubmission, Idea
from backend.app.services.common import coerce_enum, get_or_raise

PARENT_MODELS: dict[ParentKind, type[Idea] | type[ChallengeSubmission]] = {
    ParentKind.IDEA: Idea,
    ParentKind.CHALLENGE_SUBMISSION: ChallengeSubmission,
}

PARENT_LABELS: dict[ParentKind, str] = {
    ParentKind.IDEA: "Idea",
    ParentKind.CHALLENGE_SUBMISSION: "Challenge submission",
}

# URL segments used by the API routers
ROUTE_SEGMENTS: dict[str, ParentKind] = {
    "ideas": ParentKind.IDEA,
    "challenge-submissions": ParentKind.CHALLENGE_SUBMISSION,
}


@dataclass(frozen=True)
class ParentRef:
    kind: ParentKind
    id: str

    @classmethod
    def idea(cls, idea_id: str) -> "ParentRef":
        return cls(ParentKind.IDEA, idea_id)

    @classmethod
    def challenge_submission(cls, submission_id: str) -> "ParentRef":
        return cls(ParentKind.CHALLENGE_SUBMISSION, submission_id)

    @classmethod
    def parse(cls, kind: ParentKind | str, parent_id: str) -> "ParentRef":
        if not parent_id:
            raise ValidationError("Parent id is required")
        return cls(coerce_enum(ParentKind, kind, "parent type"), parent_id)

    @classmethod
    def from_segment(cls, segment: str, parent_id: str) -> "ParentRef":
        kind = ROUTE_SEGMENTS.get(segment)
        if kind is None:
            raise ValidationError(f"Unknown parent type '{segment}'")
        return cls(kind, parent_id)

    @property
    def label(self) -> str:
        return PARENT_LABELS[self.kind]


async def resolve_parent(db: AsyncSession, ref: ParentRef) -> Idea | ChallengeSubmission:
    """Load the parent row or raise ``NotFoundError``."""
    return await get_or_raise(db, PARENT_MODELS[ref.kind], ref.id, ref.label)
