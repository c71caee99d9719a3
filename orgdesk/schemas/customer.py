import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, EmailStr, Field

from orgdesk.schemas.common import POSTAL_CODE_PATTERN

CustomerType = Literal["individual", "corporate"]
CustomerCategory = Literal["vip", "premium", "standard", "basic", "wholesale", "retail"]
CustomerStatus = Literal["active", "inactive", "prospect", "lead", "suspended", "closed"]
Priority = Literal["low", "medium", "high"]
NoteType = Literal["general", "meeting", "call", "email", "task", "complaint", "other"]


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    full_name: Optional[str] = Field(None, max_length=500)
    customer_type: CustomerType = "corporate"
    category: CustomerCategory = "standard"
    status: CustomerStatus = "active"
    priority: Priority = "medium"
    phone: Optional[str] = Field(None, max_length=30)
    mobile: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    website: Optional[str] = Field(None, max_length=255)
    fax: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = None
    district: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, pattern=POSTAL_CODE_PATTERN)
    country: Optional[str] = Field(None, max_length=100)
    tax_office: Optional[str] = Field(None, max_length=100)
    tax_number: Optional[str] = Field(None, max_length=20)
    mersis_number: Optional[str] = Field(None, max_length=20)
    trade_registry_number: Optional[str] = Field(None, max_length=50)
    currency: str = Field("TRY", min_length=3, max_length=3)
    credit_limit: Optional[Decimal] = Field(None, ge=0)
    payment_terms: Optional[int] = Field(None, ge=0)
    discount_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    primary_contact_name: Optional[str] = Field(None, max_length=200)
    primary_contact_title: Optional[str] = Field(None, max_length=100)
    primary_contact_phone: Optional[str] = Field(None, max_length=30)
    primary_contact_email: Optional[EmailStr] = None
    parent_customer_id: Optional[uuid.UUID] = None
    customer_group: Optional[str] = Field(None, max_length=100)
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    metadata: Optional[dict] = None


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    full_name: Optional[str] = Field(None, max_length=500)
    customer_type: Optional[CustomerType] = None
    category: Optional[CustomerCategory] = None
    status: Optional[CustomerStatus] = None
    priority: Optional[Priority] = None
    phone: Optional[str] = Field(None, max_length=30)
    mobile: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    website: Optional[str] = Field(None, max_length=255)
    fax: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = None
    district: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, pattern=POSTAL_CODE_PATTERN)
    country: Optional[str] = Field(None, max_length=100)
    tax_office: Optional[str] = Field(None, max_length=100)
    tax_number: Optional[str] = Field(None, max_length=20)
    mersis_number: Optional[str] = Field(None, max_length=20)
    trade_registry_number: Optional[str] = Field(None, max_length=50)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    credit_limit: Optional[Decimal] = Field(None, ge=0)
    payment_terms: Optional[int] = Field(None, ge=0)
    discount_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    primary_contact_name: Optional[str] = Field(None, max_length=200)
    primary_contact_title: Optional[str] = Field(None, max_length=100)
    primary_contact_phone: Optional[str] = Field(None, max_length=30)
    primary_contact_email: Optional[EmailStr] = None
    parent_customer_id: Optional[uuid.UUID] = None
    customer_group: Optional[str] = Field(None, max_length=100)
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    metadata: Optional[dict] = None


class CustomerResponse(BaseModel):
    id: uuid.UUID
    workspace_id: uuid.UUID
    company_id: uuid.UUID
    name: str
    full_name: Optional[str] = None
    customer_type: str
    category: str
    status: str
    priority: str
    phone: Optional[str] = None
    mobile: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    fax: Optional[str] = None
    address: Optional[str] = None
    district: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    tax_office: Optional[str] = None
    tax_number: Optional[str] = None
    mersis_number: Optional[str] = None
    trade_registry_number: Optional[str] = None
    currency: str
    credit_limit: Optional[Decimal] = None
    payment_terms: Optional[int] = None
    discount_rate: Optional[Decimal] = None
    primary_contact_name: Optional[str] = None
    primary_contact_title: Optional[str] = None
    primary_contact_phone: Optional[str] = None
    primary_contact_email: Optional[str] = None
    parent_customer_id: Optional[uuid.UUID] = None
    customer_group: Optional[str] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    metadata: Optional[dict] = Field(
        None, validation_alias=AliasChoices("extra_metadata", "metadata")
    )
    created_by: Optional[uuid.UUID] = None
    updated_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class NoteCreate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    content: str = Field(..., min_length=1)
    note_type: NoteType = "general"
    is_internal: bool = False
    priority: Optional[Priority] = None
    related_contact_id: Optional[uuid.UUID] = None


class NoteUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    note_type: Optional[NoteType] = None
    is_internal: Optional[bool] = None
    priority: Optional[Priority] = None
    related_contact_id: Optional[uuid.UUID] = None


class NoteResponse(BaseModel):
    id: uuid.UUID
    customer_id: uuid.UUID
    title: Optional[str] = None
    content: str
    note_type: str
    is_internal: bool = False
    priority: Optional[str] = None
    related_contact_id: Optional[uuid.UUID] = None
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
