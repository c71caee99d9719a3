import uuid
from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, EmailStr, Field

from orgdesk.schemas.common import POSTAL_CODE_PATTERN


class LocationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    code: Optional[str] = Field(None, max_length=20)
    location_type: Optional[str] = Field(None, max_length=50)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    district: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, pattern=POSTAL_CODE_PATTERN)
    country: str = Field("Türkiye", max_length=100)
    is_headquarters: bool = False
    notes: Optional[str] = None
    metadata: Optional[dict] = None


class LocationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    code: Optional[str] = Field(None, max_length=20)
    location_type: Optional[str] = Field(None, max_length=50)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    district: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, pattern=POSTAL_CODE_PATTERN)
    country: Optional[str] = Field(None, max_length=100)
    is_headquarters: Optional[bool] = None
    notes: Optional[str] = None
    metadata: Optional[dict] = None


class LocationResponse(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    name: str
    code: Optional[str] = None
    location_type: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    district: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    is_headquarters: bool = False
    notes: Optional[str] = None
    metadata: Optional[dict] = Field(
        None, validation_alias=AliasChoices("extra_metadata", "metadata")
    )
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
