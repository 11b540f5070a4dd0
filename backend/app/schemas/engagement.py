"""Comment, suggestion and vote schemas."""

from pydantic import BaseModel


class VoteCreate(BaseModel):
    vote_type: str  # upvote | downvote


class VoteResponse(BaseModel):
    upvotes: int
    downvotes: int
    net_score: int
    user_vote: str | None = None


class CommentCreate(BaseModel):
    content: str
    reply_to_id: str | None = None


class CommentUpdate(BaseModel):
    content: str


class CommentResponse(BaseModel):
    id: str
    parent_type: str
    parent_id: str
    author_id: str
    content: str
    reply_to_id: str | None = None
    upvotes_count: int = 0
    downvotes_count: int = 0
    net_score: int = 0
    is_edited: bool = False
    edited_at: str | None = None
    created_at: str
    replies: list["CommentResponse"] = []


class SuggestionCreate(BaseModel):
    content: str
    suggestion_type: str
    priority: str = "medium"


class SuggestionStatusUpdate(BaseModel):
    status: str
    notes: str | None = None


class SuggestionResponse(BaseModel):
    id: str
    parent_type: str
    parent_id: str
    author_id: str
    content: str
    suggestion_type: str
    priority: str
    status: str
    implementation_notes: str | None = None
    reviewed_by: str | None = None
    reviewed_at: str | None = None
    implemented_at: str | None = None
    upvotes_count: int = 0
    downvotes_count: int = 0
    net_score: int = 0
    created_at: str
