import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class UploadUrlRequest(BaseModel):
    filename: Optional[str] = None
    content_type: Optional[str] = Field(None, max_length=100)


class UploadUrlResponse(BaseModel):
    upload_url: str
    blob_path: str
    blob_url: str
    expires_in: int


class FileVersionCreate(BaseModel):
    version: Optional[str] = Field(None, min_length=1, max_length=20)
    blob_url: str = Field(..., min_length=1)
    blob_path: Optional[str] = None
    content_type: Optional[str] = Field(None, max_length=100)
    size: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


class FileTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    tags: List[str] = Field(default_factory=list)
    initial_version: FileVersionCreate


class FileTemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    tags: Optional[List[str]] = None


class AttachmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    blob_url: str = Field(..., min_length=1)
    blob_path: Optional[str] = None
    content_type: Optional[str] = Field(None, max_length=100)
    size: Optional[int] = Field(None, ge=0)
    version_id: Optional[uuid.UUID] = None
    version: Optional[str] = None


class AttachmentResponse(BaseModel):
    id: uuid.UUID
    version_id: uuid.UUID
    name: str
    blob_url: str
    blob_path: Optional[str] = None
    content_type: Optional[str] = None
    size: Optional[int] = None
    created_by: Optional[uuid.UUID] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class FileVersionResponse(BaseModel):
    id: uuid.UUID
    template_id: uuid.UUID
    version: str
    blob_url: str
    blob_path: Optional[str] = None
    content_type: Optional[str] = None
    size: Optional[int] = None
    is_current: bool = False
    notes: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    attachments: List[AttachmentResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class FileTemplateResponse(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime
    current_version: Optional[FileVersionResponse] = None
    versions: List[FileVersionResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}
