from pydantic import BaseModel


class CollaborationInvite(BaseModel):
    collaborator_id: str
    role: str = "contributor"
    message: str | None = None


class CollaborationRespond(BaseModel):
    response: str  # accept | decline


class CollaborationResponse(BaseModel):
    id: str
    idea_id: str
    collaborator_id: str
    invited_by: str
    role: str
    status: str
    invitation_message: str | None = None
    invited_at: str
    responded_at: str | None = None
