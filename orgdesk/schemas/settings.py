import uuid
from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from orgdesk.schemas.common import HHMM_PATTERN

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
Weekday = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def _minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class PublicHoliday(BaseModel):
    date: date
    name: Optional[str] = None


class WorkspaceSettingsUpdate(BaseModel):
    timezone: Optional[str] = Field(None, max_length=50)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    language: Optional[str] = Field(None, max_length=5)
    date_format: Optional[str] = Field(None, max_length=20)
    working_hours_start: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    working_hours_end: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    working_days: Optional[List[Weekday]] = None
    public_holidays: Optional[List[PublicHoliday]] = None
    custom_settings: Optional[dict] = None


class WorkspaceSettingsResponse(BaseModel):
    id: uuid.UUID
    workspace_id: uuid.UUID
    timezone: str
    currency: str
    language: str
    date_format: str
    working_hours_start: str
    working_hours_end: str
    working_days: List[str]
    public_holidays: List[dict] = Field(default_factory=list)
    custom_settings: dict = Field(default_factory=dict)
    updated_at: datetime

    model_config = {"from_attributes": True}


class CompanySettingsUpdate(BaseModel):
    fiscal_year_start: Optional[str] = Field(None, pattern=r"^(0[1-9]|[12]\d|3[01])/(0[1-9]|1[0-2])$")
    tax_rate: Optional[str] = Field(None, pattern=r"^\d{1,2}(\.\d{1,2})?$")
    invoice_prefix: Optional[str] = Field(None, max_length=20)
    invoice_numbering: Optional[Literal["sequential", "yearly", "monthly"]] = None
    working_hours_start: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    working_hours_end: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    working_days: Optional[List[Weekday]] = None
    public_holidays: Optional[List[PublicHoliday]] = None
    custom_settings: Optional[dict] = None


class EffectiveWorkingTime(BaseModel):
    working_hours_start: str
    working_hours_end: str
    working_days: List[str]
    public_holidays: List[dict] = Field(default_factory=list)


class CompanySettingsResponse(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    fiscal_year_start: str
    tax_rate: str
    invoice_prefix: str
    invoice_numbering: str
    working_hours_start: Optional[str] = None
    working_hours_end: Optional[str] = None
    working_days: Optional[List[str]] = None
    public_holidays: List[dict] = Field(default_factory=list)
    custom_settings: dict = Field(default_factory=dict)
    updated_at: datetime
    effective: Optional[EffectiveWorkingTime] = None

    model_config = {"from_attributes": True}


class TimeInterval(BaseModel):
    start: str = Field(..., pattern=HHMM_PATTERN)
    end: str = Field(..., pattern=HHMM_PATTERN)

    @model_validator(mode="after")
    def check_order(self):
        if _minutes(self.start) >= _minutes(self.end):
            raise ValueError("Interval start must be before end")
        return self

    def contains(self, other: "TimeInterval") -> bool:
        return (
            _minutes(self.start) <= _minutes(other.start)
            and _minutes(other.end) <= _minutes(self.end)
        )


class DaySchedule(BaseModel):
    is_working_day: bool = False
    work_intervals: List[TimeInterval] = Field(default_factory=list)
    breaks: List[TimeInterval] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_intervals(self):
        if not self.is_working_day:
            return self
        if not self.work_intervals:
            raise ValueError("A working day needs at least one work interval")
        for brk in self.breaks:
            if not any(interval.contains(brk) for interval in self.work_intervals):
                raise ValueError(f"Break {brk.start}-{brk.end} is outside the work intervals")
        return self


class WorkCalendarInput(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    days: Dict[Weekday, DaySchedule]

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Calendar name is required")
        return v

    @field_validator("days")
    @classmethod
    def fill_missing_days(cls, v: dict) -> dict:
        return {day: v.get(day, DaySchedule()) for day in WEEKDAYS}


class WorkCalendar(WorkCalendarInput):
    id: str
    is_default: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
