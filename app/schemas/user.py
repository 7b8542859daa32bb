from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    phone: str | None = Field(None, max_length=50)


class UserResponse(BaseModel):
    id: UUID
    email: str
    phone: str | None
    is_admin: bool = False
    is_active: bool = True
    email_verified: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class TokenPayload(BaseModel):
    sub: str
    exp: int
