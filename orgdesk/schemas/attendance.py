import uuid
from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from orgdesk.schemas.common import HHMM_PATTERN

AttendanceSource = Literal["device", "mobile", "manual", "web"]
StatusFilter = Literal["all", "late_in", "late_out", "anomalies"]


class AttendanceRecordUpsert(BaseModel):
    employee_id: uuid.UUID
    work_date: date
    shift_start: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    shift_end: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    check_in: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    check_out: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    check_in_source: Optional[AttendanceSource] = None
    check_out_source: Optional[AttendanceSource] = None
    location_shared: Optional[bool] = None
    notes: Optional[str] = None


class AttendanceRecordResponse(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    employee_id: uuid.UUID
    work_date: date
    shift_start: Optional[str] = None
    shift_end: Optional[str] = None
    check_in: Optional[str] = None
    check_out: Optional[str] = None
    check_in_source: Optional[str] = None
    check_out_source: Optional[str] = None
    location_shared: bool = False
    notes: Optional[str] = None
    approval_status: str
    approved_by: Optional[uuid.UUID] = None
    approved_at: Optional[datetime] = None
    updated_at: datetime

    model_config = {"from_attributes": True}


class DailyRowResponse(BaseModel):
    employee_id: str
    employee_name: str
    department_name: Optional[str] = None
    date: date
    shift: Optional[str] = None
    shift_start: Optional[str] = None
    shift_end: Optional[str] = None
    check_in: Optional[str] = None
    check_out: Optional[str] = None
    check_in_status: Optional[str] = None
    check_out_status: Optional[str] = None
    worked_minutes: Optional[int] = None
    diff_minutes: Optional[int] = None
    worked: str = "-"
    diff: str = "-"
    check_in_source: Optional[str] = None
    check_out_source: Optional[str] = None
    location_shared: bool = False
    approval_status: Optional[str] = None
    record_id: Optional[str] = None


class WeeklyCellResponse(BaseModel):
    date: date
    row: Optional[DailyRowResponse] = None
    tone: Optional[str] = None


class WeeklyRowResponse(BaseModel):
    employee_id: str
    employee_name: str
    department_name: Optional[str] = None
    cells: List[WeeklyCellResponse]


class WeeklyViewResponse(BaseModel):
    week_start: date
    week_end: date
    days: List[date]
    rows: List[WeeklyRowResponse]
