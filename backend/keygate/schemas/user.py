from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$")
    email: str | None = Field(None, max_length=255)


class UserUpdate(BaseModel):
    username: str = Field(..., min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$")


class UserResponse(BaseModel):
    id: UUID
    username: str
    email: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    active_key_count: int = 0

    class Config:
        from_attributes = True
