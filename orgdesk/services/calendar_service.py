"""Workspace/company settings resolution and work calendars."""

import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified
import structlog

from orgdesk.models.settings import (
    DEFAULT_WORKING_DAYS,
    CompanySettings,
    WorkspaceSettings,
)
from orgdesk.schemas.settings import (
    WEEKDAYS,
    DaySchedule,
    EffectiveWorkingTime,
    TimeInterval,
    WorkCalendar,
    WorkCalendarInput,
)

logger = structlog.get_logger()

CALENDARS_KEY = "work_calendars"
DEFAULT_CALENDAR_KEY = "default_calendar_id"
DEFAULT_CALENDAR_ID = "default"


async def get_or_create_workspace_settings(
    db: AsyncSession, workspace_id: uuid.UUID
) -> WorkspaceSettings:
    result = await db.execute(
        select(WorkspaceSettings).where(WorkspaceSettings.workspace_id == workspace_id)
    )
    ws_settings = result.scalar_one_or_none()
    if ws_settings is None:
        ws_settings = WorkspaceSettings(
            workspace_id=workspace_id,
            timezone="Europe/Istanbul",
            currency="TRY",
            language="tr",
            date_format="DD/MM/YYYY",
            working_hours_start="09:00",
            working_hours_end="18:00",
            working_days=list(DEFAULT_WORKING_DAYS),
            public_holidays=[],
            custom_settings={},
        )
        db.add(ws_settings)
        await db.flush()
        logger.info("workspace_settings_created", workspace_id=str(workspace_id))
    return ws_settings


async def get_or_create_company_settings(
    db: AsyncSession, company_id: uuid.UUID
) -> CompanySettings:
    result = await db.execute(
        select(CompanySettings).where(CompanySettings.company_id == company_id)
    )
    company_settings = result.scalar_one_or_none()
    if company_settings is None:
        company_settings = CompanySettings(
            company_id=company_id,
            fiscal_year_start="01/01",
            tax_rate="18",
            invoice_prefix="INV",
            invoice_numbering="sequential",
            public_holidays=[],
            custom_settings={},
        )
        db.add(company_settings)
        await db.flush()
        logger.info("company_settings_created", company_id=str(company_id))
    return company_settings


def effective_working_time(
    company_settings: CompanySettings, workspace_settings: WorkspaceSettings
) -> EffectiveWorkingTime:
    """Company overrides win; unset ones fall back to the workspace."""
    holidays = list(workspace_settings.public_holidays or [])
    holidays.extend(company_settings.public_holidays or [])
    return EffectiveWorkingTime(
        working_hours_start=company_settings.working_hours_start
        or workspace_settings.working_hours_start,
        working_hours_end=company_settings.working_hours_end
        or workspace_settings.working_hours_end,
        working_days=company_settings.working_days
        if company_settings.working_days is not None
        else list(workspace_settings.working_days or DEFAULT_WORKING_DAYS),
        public_holidays=holidays,
    )


def build_default_calendar(effective: EffectiveWorkingTime) -> WorkCalendar:
    working_days = set(effective.working_days)
    interval = TimeInterval(
        start=effective.working_hours_start, end=effective.working_hours_end
    )
    days = {
        day: DaySchedule(
            is_working_day=day in working_days,
            work_intervals=[interval] if day in working_days else [],
        )
        for day in WEEKDAYS
    }
    return WorkCalendar(
        id=DEFAULT_CALENDAR_ID,
        name="Default",
        description="Built from the working hours settings",
        days=days,
    )


def stored_calendars(company_settings: CompanySettings) -> list[WorkCalendar]:
    custom = company_settings.custom_settings or {}
    default_id = custom.get(DEFAULT_CALENDAR_KEY)
    calendars = []
    for raw in custom.get(CALENDARS_KEY, []):
        calendar = WorkCalendar.model_validate(raw)
        calendar.is_default = calendar.id == default_id
        calendars.append(calendar)
    return calendars


def _save_calendars(company_settings: CompanySettings, calendars: list[WorkCalendar]):
    custom = dict(company_settings.custom_settings or {})
    custom[CALENDARS_KEY] = [
        c.model_dump(mode="json", exclude={"is_default"}) for c in calendars
    ]
    company_settings.custom_settings = custom
    flag_modified(company_settings, "custom_settings")


def list_calendars(
    company_settings: CompanySettings, effective: EffectiveWorkingTime
) -> list[WorkCalendar]:
    calendars = stored_calendars(company_settings)
    if calendars:
        return calendars
    default = build_default_calendar(effective)
    default.is_default = True
    return [default]


def add_calendar(company_settings: CompanySettings, body: WorkCalendarInput) -> WorkCalendar:
    now = datetime.utcnow()
    calendar = WorkCalendar(
        id=str(uuid.uuid4()),
        created_at=now,
        updated_at=now,
        **body.model_dump(),
    )
    calendars = stored_calendars(company_settings)
    calendars.append(calendar)
    _save_calendars(company_settings, calendars)
    return calendar


def replace_calendar(
    company_settings: CompanySettings, calendar_id: str, body: WorkCalendarInput
) -> Optional[WorkCalendar]:
    calendars = stored_calendars(company_settings)
    for index, existing in enumerate(calendars):
        if existing.id == calendar_id:
            updated = WorkCalendar(
                id=existing.id,
                created_at=existing.created_at,
                updated_at=datetime.utcnow(),
                is_default=existing.is_default,
                **body.model_dump(),
            )
            calendars[index] = updated
            _save_calendars(company_settings, calendars)
            return updated
    return None


def remove_calendar(company_settings: CompanySettings, calendar_id: str) -> bool:
    calendars = stored_calendars(company_settings)
    remaining = [c for c in calendars if c.id != calendar_id]
    if len(remaining) == len(calendars):
        return False
    _save_calendars(company_settings, remaining)
    custom = company_settings.custom_settings
    if custom.get(DEFAULT_CALENDAR_KEY) == calendar_id:
        custom.pop(DEFAULT_CALENDAR_KEY)
        flag_modified(company_settings, "custom_settings")
    return True


def set_default_calendar(company_settings: CompanySettings, calendar_id: str) -> bool:
    if not any(c.id == calendar_id for c in stored_calendars(company_settings)):
        return False
    custom = dict(company_settings.custom_settings or {})
    custom[DEFAULT_CALENDAR_KEY] = calendar_id
    company_settings.custom_settings = custom
    flag_modified(company_settings, "custom_settings")
    return True


def attendance_calendar(
    company_settings: CompanySettings, effective: EffectiveWorkingTime
) -> WorkCalendar:
    """The default-marked calendar, else the first stored one, else the built default."""
    calendars = stored_calendars(company_settings)
    for calendar in calendars:
        if calendar.is_default:
            return calendar
    if calendars:
        return calendars[0]
    return build_default_calendar(effective)


def holiday_dates(effective: EffectiveWorkingTime) -> set[date]:
    dates = set()
    for holiday in effective.public_holidays:
        value = holiday.get("date") if isinstance(holiday, dict) else holiday
        if isinstance(value, date):
            dates.add(value)
        elif value:
            try:
                dates.add(date.fromisoformat(str(value)))
            except ValueError:
                logger.warning("public_holiday_unparseable", value=str(value))
    return dates


def shift_for_date(
    calendar: WorkCalendar, day: date, holidays: Optional[set[date]] = None
) -> Optional[tuple[str, str]]:
    """(start, end) of the scheduled shift, or None on days off."""
    if holidays and day in holidays:
        return None
    schedule = calendar.days.get(WEEKDAYS[day.weekday()])
    if schedule is None or not schedule.is_working_day or not schedule.work_intervals:
        return None
    # zero-padded HH:MM strings order correctly as text
    start = min(interval.start for interval in schedule.work_intervals)
    end = max(interval.end for interval in schedule.work_intervals)
    return start, end
