"""
Unit tests for orgdesk/services/calendar_service.py
"""

from datetime import date

import pytest
from pydantic import ValidationError

from orgdesk.models.settings import CompanySettings, WorkspaceSettings
from orgdesk.schemas.settings import DaySchedule, TimeInterval, WorkCalendarInput
from orgdesk.services.calendar_service import (
    CALENDARS_KEY,
    DEFAULT_CALENDAR_ID,
    DEFAULT_CALENDAR_KEY,
    add_calendar,
    attendance_calendar,
    build_default_calendar,
    effective_working_time,
    holiday_dates,
    list_calendars,
    remove_calendar,
    replace_calendar,
    set_default_calendar,
    shift_for_date,
)


def _workspace_settings(**overrides):
    values = dict(
        working_hours_start="09:00",
        working_hours_end="18:00",
        working_days=["monday", "tuesday", "wednesday", "thursday", "friday"],
        public_holidays=[{"date": "2026-01-01", "name": "New Year"}],
    )
    values.update(overrides)
    return WorkspaceSettings(**values)


def _company_settings(**overrides):
    values = dict(public_holidays=[], custom_settings={})
    values.update(overrides)
    return CompanySettings(**values)


def _calendar_input(name="Night shift", start="22:00", end="23:59"):
    return WorkCalendarInput(
        name=name,
        days={
            "monday": DaySchedule(
                is_working_day=True,
                work_intervals=[TimeInterval(start=start, end=end)],
            )
        },
    )


# ---------------------------------------------------------------------------
# Effective working time
# ---------------------------------------------------------------------------


def test_company_inherits_workspace_hours():
    effective = effective_working_time(_company_settings(), _workspace_settings())

    assert effective.working_hours_start == "09:00"
    assert effective.working_hours_end == "18:00"
    assert effective.working_days[0] == "monday"
    assert effective.public_holidays == [{"date": "2026-01-01", "name": "New Year"}]


def test_company_overrides_win_and_holidays_merge():
    company = _company_settings(
        working_hours_start="08:00",
        working_days=["monday", "saturday"],
        public_holidays=[{"date": "2026-05-19", "name": "Youth Day"}],
    )

    effective = effective_working_time(company, _workspace_settings())

    assert effective.working_hours_start == "08:00"
    assert effective.working_hours_end == "18:00"
    assert effective.working_days == ["monday", "saturday"]
    assert holiday_dates(effective) == {date(2026, 1, 1), date(2026, 5, 19)}


def test_unparseable_holidays_are_skipped():
    effective = effective_working_time(
        _company_settings(public_holidays=[{"date": "someday"}, {"date": "2026-04-23"}]),
        _workspace_settings(public_holidays=[]),
    )

    assert holiday_dates(effective) == {date(2026, 4, 23)}


# ---------------------------------------------------------------------------
# Calendars
# ---------------------------------------------------------------------------


def test_default_calendar_from_settings():
    effective = effective_working_time(_company_settings(), _workspace_settings())
    calendar = build_default_calendar(effective)

    assert calendar.id == DEFAULT_CALENDAR_ID
    assert calendar.days["monday"].is_working_day
    assert calendar.days["monday"].work_intervals[0].start == "09:00"
    assert not calendar.days["sunday"].is_working_day
    assert calendar.days["sunday"].work_intervals == []


def test_list_without_stored_calendars_returns_default():
    effective = effective_working_time(_company_settings(), _workspace_settings())

    calendars = list_calendars(_company_settings(), effective)

    assert len(calendars) == 1
    assert calendars[0].id == DEFAULT_CALENDAR_ID
    assert calendars[0].is_default is True


def test_calendar_lifecycle():
    company = _company_settings()
    effective = effective_working_time(company, _workspace_settings())

    night = add_calendar(company, _calendar_input())
    day = add_calendar(company, _calendar_input(name="Day shift", start="08:00", end="16:00"))
    assert [c["id"] for c in company.custom_settings[CALENDARS_KEY]] == [night.id, day.id]
    # missing weekdays are filled in as days off
    assert night.days["tuesday"].is_working_day is False

    # first stored calendar is used until one is marked default
    assert attendance_calendar(company, effective).id == night.id

    assert set_default_calendar(company, day.id) is True
    assert company.custom_settings[DEFAULT_CALENDAR_KEY] == day.id
    assert attendance_calendar(company, effective).id == day.id
    assert set_default_calendar(company, "missing") is False

    updated = replace_calendar(company, day.id, _calendar_input(name="Early", start="07:00", end="15:00"))
    assert updated.name == "Early"
    assert updated.is_default is True
    assert updated.created_at == day.created_at
    assert replace_calendar(company, "missing", _calendar_input()) is None

    assert remove_calendar(company, day.id) is True
    assert DEFAULT_CALENDAR_KEY not in company.custom_settings
    assert remove_calendar(company, day.id) is False
    assert [c.id for c in list_calendars(company, effective)] == [night.id]


def test_working_day_requires_interval():
    with pytest.raises(ValidationError):
        DaySchedule(is_working_day=True, work_intervals=[])


def test_break_must_fit_inside_interval():
    with pytest.raises(ValidationError):
        DaySchedule(
            is_working_day=True,
            work_intervals=[TimeInterval(start="09:00", end="12:00")],
            breaks=[TimeInterval(start="11:30", end="12:30")],
        )


def test_interval_start_before_end():
    with pytest.raises(ValidationError):
        TimeInterval(start="18:00", end="09:00")


# ---------------------------------------------------------------------------
# Shifts
# ---------------------------------------------------------------------------


def test_shift_spans_all_intervals():
    calendar = add_calendar(_company_settings(), WorkCalendarInput(
        name="Split",
        days={
            "monday": DaySchedule(
                is_working_day=True,
                work_intervals=[
                    TimeInterval(start="13:00", end="17:30"),
                    TimeInterval(start="08:30", end="12:00"),
                ],
            )
        },
    ))

    assert shift_for_date(calendar, date(2026, 3, 2)) == ("08:30", "17:30")
    assert shift_for_date(calendar, date(2026, 3, 3)) is None
    assert shift_for_date(calendar, date(2026, 3, 2), {date(2026, 3, 2)}) is None
