import uuid
from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

EmploymentType = Literal["full_time", "part_time", "contractor", "intern"]


class EmployeeCreate(BaseModel):
    user_id: uuid.UUID
    employee_number: Optional[str] = Field(None, max_length=50)
    position: Optional[str] = Field(None, max_length=100)
    department_id: Optional[uuid.UUID] = None
    manager_id: Optional[uuid.UUID] = None
    employment_type: EmploymentType = "full_time"
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class EmployeeUpdate(BaseModel):
    employee_number: Optional[str] = Field(None, max_length=50)
    position: Optional[str] = Field(None, max_length=100)
    department_id: Optional[uuid.UUID] = None
    manager_id: Optional[uuid.UUID] = None
    employment_type: Optional[EmploymentType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None


class EmployeeResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    email: str
    employee_number: Optional[str] = None
    position: Optional[str] = None
    department_id: Optional[uuid.UUID] = None
    department_name: Optional[str] = None
    manager_id: Optional[uuid.UUID] = None
    employment_type: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool
    created_at: datetime
