import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, EmailStr, Field

from orgdesk.schemas.common import POSTAL_CODE_PATTERN

SupplierType = Literal["individual", "corporate"]
SupplierCategory = Literal["strategic", "preferred", "approved", "standard", "new", "temporary"]
SupplierStatus = Literal["active", "inactive", "prospect", "suspended", "blacklisted", "closed"]


class SupplierCreate(BaseModel):
    supplier_code: Optional[str] = Field(None, min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    full_name: Optional[str] = Field(None, max_length=500)
    supplier_type: SupplierType = "corporate"
    category: SupplierCategory = "standard"
    status: SupplierStatus = "active"
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
    payment_terms: Optional[int] = Field(None, ge=0)
    lead_time_days: Optional[int] = Field(None, ge=0)
    minimum_order_quantity: Optional[Decimal] = Field(None, ge=0)
    order_increment: Optional[Decimal] = Field(None, ge=0)
    quality_rating: Optional[Decimal] = Field(None, ge=0, le=5)
    delivery_rating: Optional[Decimal] = Field(None, ge=0, le=5)
    primary_contact_name: Optional[str] = Field(None, max_length=200)
    primary_contact_title: Optional[str] = Field(None, max_length=100)
    primary_contact_phone: Optional[str] = Field(None, max_length=30)
    primary_contact_email: Optional[EmailStr] = None
    parent_supplier_id: Optional[uuid.UUID] = None
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    metadata: Optional[dict] = None


class SupplierUpdate(BaseModel):
    supplier_code: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    full_name: Optional[str] = Field(None, max_length=500)
    supplier_type: Optional[SupplierType] = None
    category: Optional[SupplierCategory] = None
    status: Optional[SupplierStatus] = None
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
    payment_terms: Optional[int] = Field(None, ge=0)
    lead_time_days: Optional[int] = Field(None, ge=0)
    minimum_order_quantity: Optional[Decimal] = Field(None, ge=0)
    order_increment: Optional[Decimal] = Field(None, ge=0)
    quality_rating: Optional[Decimal] = Field(None, ge=0, le=5)
    delivery_rating: Optional[Decimal] = Field(None, ge=0, le=5)
    primary_contact_name: Optional[str] = Field(None, max_length=200)
    primary_contact_title: Optional[str] = Field(None, max_length=100)
    primary_contact_phone: Optional[str] = Field(None, max_length=30)
    primary_contact_email: Optional[EmailStr] = None
    parent_supplier_id: Optional[uuid.UUID] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    metadata: Optional[dict] = None


class SupplierResponse(BaseModel):
    id: uuid.UUID
    workspace_id: uuid.UUID
    company_id: uuid.UUID
    supplier_code: Optional[str] = None
    name: str
    full_name: Optional[str] = None
    supplier_type: str
    category: str
    status: str
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
    payment_terms: Optional[int] = None
    lead_time_days: Optional[int] = None
    minimum_order_quantity: Optional[Decimal] = None
    order_increment: Optional[Decimal] = None
    quality_rating: Optional[Decimal] = None
    delivery_rating: Optional[Decimal] = None
    primary_contact_name: Optional[str] = None
    primary_contact_title: Optional[str] = None
    primary_contact_phone: Optional[str] = None
    primary_contact_email: Optional[str] = None
    parent_supplier_id: Optional[uuid.UUID] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    metadata: Optional[dict] = Field(
        None, validation_alias=AliasChoices("extra_metadata", "metadata")
    )
    created_by: Optional[uuid.UUID] = None
    updated_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
