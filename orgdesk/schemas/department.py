import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class DepartmentGoals(BaseModel):
    short_term: Optional[str] = None
    medium_term: Optional[str] = None
    long_term: Optional[str] = None


class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    code: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = None
    responsibility_area: Optional[str] = None
    goals: Optional[DepartmentGoals] = None
    manager_id: Optional[uuid.UUID] = None
    parent_department_id: Optional[uuid.UUID] = None
    mail_address: Optional[EmailStr] = None
    notes: Optional[str] = None


class DepartmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    code: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = None
    responsibility_area: Optional[str] = None
    goals: Optional[DepartmentGoals] = None
    manager_id: Optional[uuid.UUID] = None
    parent_department_id: Optional[uuid.UUID] = None
    mail_address: Optional[EmailStr] = None
    notes: Optional[str] = None


class DepartmentResponse(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    parent_department_id: Optional[uuid.UUID] = None
    code: Optional[str] = None
    name: str
    description: Optional[str] = None
    responsibility_area: Optional[str] = None
    goals: Optional[dict] = None
    manager_id: Optional[uuid.UUID] = None
    manager_name: Optional[str] = None
    mail_address: Optional[str] = None
    notes: Optional[str] = None
    unit_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UnitCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    staff_count: int = Field(0, ge=0)
    lead_id: Optional[uuid.UUID] = None


class UnitUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    staff_count: Optional[int] = Field(None, ge=0)
    lead_id: Optional[uuid.UUID] = None


class UnitResponse(BaseModel):
    id: uuid.UUID
    department_id: uuid.UUID
    name: str
    description: Optional[str] = None
    staff_count: int = 0
    lead_id: Optional[uuid.UUID] = None
    lead_name: Optional[str] = None
    lead_email: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
