from pydantic import BaseModel, EmailStr


class UserCreate(BaseModel):
    name: str
    email: EmailStr
    roles: list[str] | None = None


class UserRolesUpdate(BaseModel):
    roles: list[str]


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    roles: list[str]
    created_at: str
