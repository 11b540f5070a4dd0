"""Idea, category and version schemas."""

from pydantic import BaseModel


class CategoryResponse(BaseModel):
    id: str
    name: str
    description: str | None = None


class IdeaCreate(BaseModel):
    title: str
    description: str
    category_id: str | None = None


class IdeaUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    category_id: str | None = None
    note: str | None = None  # stored on the version this edit creates


class IdeaResponse(BaseModel):
    id: str
    title: str
    description: str
    author_id: str
    category_id: str | None = None
    current_stage: str
    created_at: str
    submitted_at: str | None = None
    completed_at: str | None = None
    last_stage_change: str | None = None
    last_reviewer_id: str | None = None


class ChallengeSubmissionCreate(BaseModel):
    challenge_title: str
    title: str
    description: str


class ChallengeSubmissionResponse(BaseModel):
    id: str
    challenge_title: str
    title: str
    description: str
    author_id: str
    status: str
    created_at: str
    winner_announced_at: str | None = None


class VersionCreate(BaseModel):
    note: str | None = None


class VersionResponse(BaseModel):
    id: str
    idea_id: str
    version_number: int
    title: str
    description: str
    category_id: str | None = None
    notes: str | None = None
    is_current: bool
    created_by: str
    created_at: str


class FieldChange(BaseModel):
    old: str | None = None
    new: str | None = None


class VersionComparison(BaseModel):
    old_version_id: str
    new_version_id: str
    differences: dict[str, FieldChange]
