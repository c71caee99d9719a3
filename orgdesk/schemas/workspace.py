import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field

WorkspaceRole = Literal["owner", "admin", "member", "viewer"]


class WorkspaceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    slug: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9-]+$")
    settings: dict = Field(default_factory=dict)


class WorkspaceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = Field(None, min_length=1, max_length=100, pattern=r"^[a-z0-9-]+$")
    settings: Optional[dict] = None


class WorkspaceResponse(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    settings: dict = Field(default_factory=dict)
    owner_id: uuid.UUID
    role: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MemberCreate(BaseModel):
    email: EmailStr
    # owner is assigned through workspace ownership only
    role: Literal["admin", "member", "viewer"] = "member"


class MemberUpdate(BaseModel):
    role: Literal["admin", "member", "viewer"]


class MemberResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    email: str
    name: str
    role: str
    joined_at: datetime
