import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, EmailStr, Field

from orgdesk.schemas.common import POSTAL_CODE_PATTERN

CompanyStatus = Literal["active", "inactive", "onboarding", "suspended", "lead"]


class CompanyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    full_name: Optional[str] = Field(None, max_length=500)
    logo_url: Optional[str] = None
    company_type: Optional[str] = Field(None, max_length=50)
    status: CompanyStatus = "active"
    industry: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    website: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = None
    district: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, pattern=POSTAL_CODE_PATTERN)
    tax_office: Optional[str] = Field(None, max_length=100)
    tax_number: Optional[str] = Field(None, max_length=20)
    mersis_number: Optional[str] = Field(None, max_length=20)
    default_currency: str = Field("TRY", min_length=3, max_length=3)
    parent_company_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    metadata: Optional[dict] = None


class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    full_name: Optional[str] = Field(None, max_length=500)
    logo_url: Optional[str] = None
    company_type: Optional[str] = Field(None, max_length=50)
    status: Optional[CompanyStatus] = None
    industry: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    website: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = None
    district: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, pattern=POSTAL_CODE_PATTERN)
    tax_office: Optional[str] = Field(None, max_length=100)
    tax_number: Optional[str] = Field(None, max_length=20)
    mersis_number: Optional[str] = Field(None, max_length=20)
    default_currency: Optional[str] = Field(None, min_length=3, max_length=3)
    parent_company_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    metadata: Optional[dict] = None


class CompanyResponse(BaseModel):
    id: uuid.UUID
    name: str
    slug: str = ""
    full_name: Optional[str] = None
    logo_url: Optional[str] = None
    company_type: Optional[str] = None
    status: str
    industry: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    district: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    tax_office: Optional[str] = None
    tax_number: Optional[str] = None
    mersis_number: Optional[str] = None
    default_currency: str
    parent_company_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    metadata: Optional[dict] = Field(
        None, validation_alias=AliasChoices("extra_metadata", "metadata")
    )
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
