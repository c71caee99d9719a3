"""Address and contact payloads shared by customers and suppliers."""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field

from orgdesk.schemas.common import POSTAL_CODE_PATTERN

AddressType = Literal["billing", "shipping", "office", "warehouse", "other"]


class AddressCreate(BaseModel):
    address_type: AddressType = "billing"
    title: Optional[str] = Field(None, max_length=200)
    address: str = Field(..., min_length=1)
    district: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, pattern=POSTAL_CODE_PATTERN)
    country: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    contact_name: Optional[str] = Field(None, max_length=200)
    contact_title: Optional[str] = Field(None, max_length=100)
    is_default: bool = False
    is_active: bool = True
    notes: Optional[str] = None


class AddressUpdate(BaseModel):
    address_type: Optional[AddressType] = None
    title: Optional[str] = Field(None, max_length=200)
    address: Optional[str] = Field(None, min_length=1)
    district: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, pattern=POSTAL_CODE_PATTERN)
    country: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    contact_name: Optional[str] = Field(None, max_length=200)
    contact_title: Optional[str] = Field(None, max_length=100)
    is_default: Optional[bool] = None
    is_active: Optional[bool] = None
    notes: Optional[str] = None


class AddressResponse(BaseModel):
    id: uuid.UUID
    address_type: str
    title: Optional[str] = None
    address: str
    district: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    contact_name: Optional[str] = None
    contact_title: Optional[str] = None
    is_default: bool = False
    is_active: bool = True
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ContactCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    title: Optional[str] = Field(None, max_length=100)
    department: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    mobile: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    fax: Optional[str] = Field(None, max_length=30)
    role: Optional[str] = Field(None, max_length=100)
    is_primary: bool = False
    is_active: bool = True
    notes: Optional[str] = None


class ContactUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    title: Optional[str] = Field(None, max_length=100)
    department: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    mobile: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    fax: Optional[str] = Field(None, max_length=30)
    role: Optional[str] = Field(None, max_length=100)
    is_primary: Optional[bool] = None
    is_active: Optional[bool] = None
    notes: Optional[str] = None


class ContactResponse(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    title: Optional[str] = None
    department: Optional[str] = None
    phone: Optional[str] = None
    mobile: Optional[str] = None
    email: Optional[str] = None
    fax: Optional[str] = None
    role: Optional[str] = None
    is_primary: bool = False
    is_active: bool = True
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
