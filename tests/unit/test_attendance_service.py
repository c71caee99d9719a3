"""
Unit tests for orgdesk/services/attendance_service.py

Covers:
  - HH:MM parsing and formatting
  - check-in/out classification (5 min late/early, 20 min overtime)
  - status filters and weekly cell tones
  - daily rows and weekly grid built from records and the work calendar
"""

import uuid
from datetime import date
from types import SimpleNamespace

import pytest

from orgdesk.schemas.settings import EffectiveWorkingTime
from orgdesk.services.attendance_service import (
    TONE_AMBER,
    TONE_BLUE,
    TONE_RED,
    Employee,
    build_daily_rows,
    build_weekly_view,
    compute_metrics,
    date_range,
    default_range,
    format_diff,
    format_minutes,
    matches_status_filter,
    parse_hhmm,
    row_tone,
    scope_condition,
    week_bounds,
)
from orgdesk.services.calendar_service import build_default_calendar

# 2026-03-02 is a Monday
MONDAY = date(2026, 3, 2)
SATURDAY = date(2026, 3, 7)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _calendar():
    return build_default_calendar(EffectiveWorkingTime(
        working_hours_start="09:00",
        working_hours_end="18:00",
        working_days=["monday", "tuesday", "wednesday", "thursday", "friday"],
    ))


def _employee(name: str) -> Employee:
    return Employee(id=str(uuid.uuid4()), name=name, email=f"{name.lower()}@example.com")


def _record(employee: Employee, day: date, check_in=None, check_out=None,
            shift_start=None, shift_end=None):
    return SimpleNamespace(
        id=uuid.uuid4(),
        employee_id=uuid.UUID(employee.id),
        work_date=day,
        shift_start=shift_start,
        shift_end=shift_end,
        check_in=check_in,
        check_out=check_out,
        check_in_source="mobile",
        check_out_source=None,
        location_shared=True,
        approval_status="pending",
    )


# ---------------------------------------------------------------------------
# Parsing and formatting
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "value, expected",
    [("09:00", 540), ("00:00", 0), ("23:59", 1439), (" 8:05 ", 485),
     ("24:00", None), ("12:60", None), ("noon", None), ("", None), (None, None)],
)
def test_parse_hhmm(value, expected):
    assert parse_hhmm(value) == expected


def test_format_minutes_and_diff():
    assert format_minutes(None) == "-"
    assert format_minutes(545) == "09:05"
    assert format_minutes(-30) == "-00:30"
    assert format_diff(45) == "+00:45"
    assert format_diff(-45) == "-00:45"
    assert format_diff(0) == "00:00"
    assert format_diff(None) == "-"


# ---------------------------------------------------------------------------
# compute_metrics
# ---------------------------------------------------------------------------


def test_metrics_on_time_day():
    metrics = compute_metrics("09:00", "18:00", "09:03", "18:10")

    assert metrics.expected_minutes == 540
    assert metrics.total_minutes == 547
    assert metrics.diff_minutes == 7
    assert metrics.check_in_status == "on_time"
    assert metrics.check_out_status == "on_time"


@pytest.mark.parametrize(
    "check_in, expected",
    [("09:05", "on_time"), ("09:06", "late"), ("08:55", "on_time"), ("08:54", "early")],
)
def test_check_in_thresholds(check_in, expected):
    assert compute_metrics("09:00", "18:00", check_in, None).check_in_status == expected


@pytest.mark.parametrize(
    "check_out, expected",
    [("17:55", "on_time"), ("17:54", "early"), ("18:20", "on_time"), ("18:21", "overtime")],
)
def test_check_out_thresholds(check_out, expected):
    assert compute_metrics("09:00", "18:00", None, check_out).check_out_status == expected


def test_metrics_without_check_out():
    metrics = compute_metrics("09:00", "18:00", "09:00", None)

    assert metrics.total_minutes is None
    assert metrics.diff_minutes is None
    assert metrics.check_out_status is None


def test_metrics_without_shift():
    metrics = compute_metrics(None, None, "09:00", "17:00")

    assert metrics.total_minutes == 480
    assert metrics.expected_minutes is None
    assert metrics.check_in_status is None


# ---------------------------------------------------------------------------
# Filters and tones
# ---------------------------------------------------------------------------


def test_status_filters():
    late = {"check_in_status": "late", "check_out_status": "on_time"}
    overtime = {"check_in_status": "on_time", "check_out_status": "overtime"}
    clean = {"check_in_status": "on_time", "check_out_status": "on_time"}

    assert matches_status_filter(late, "late_in")
    assert not matches_status_filter(overtime, "late_in")
    assert matches_status_filter(overtime, "late_out")
    assert matches_status_filter(late, "anomalies")
    assert matches_status_filter(overtime, "anomalies")
    assert not matches_status_filter(clean, "anomalies")
    assert matches_status_filter(clean, "all")


def test_row_tone_priority():
    assert row_tone(None) is None
    assert row_tone({"check_in_status": "late", "check_out_status": "overtime"}) == TONE_RED
    assert row_tone({"check_in_status": "early", "check_out_status": "early"}) == TONE_RED
    assert row_tone({"check_in_status": "early", "check_out_status": "overtime"}) == TONE_AMBER
    assert row_tone({"check_in_status": "on_time", "check_out_status": "overtime"}) == TONE_BLUE
    assert row_tone({"check_in_status": "on_time", "check_out_status": "on_time"}) is None


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def test_week_bounds_and_ranges():
    assert week_bounds(date(2026, 3, 5)) == (MONDAY, date(2026, 3, 8))
    assert week_bounds(MONDAY) == (MONDAY, date(2026, 3, 8))
    assert date_range(MONDAY, MONDAY) == [MONDAY]
    assert len(date_range(MONDAY, date(2026, 3, 8))) == 7
    assert default_range(date(2026, 3, 8)) == (MONDAY, date(2026, 3, 8))


def test_scope_condition_for_admin_is_none():
    assert scope_condition(str(uuid.uuid4()), True) is None
    assert scope_condition(str(uuid.uuid4()), False) is not None


# ---------------------------------------------------------------------------
# Daily view
# ---------------------------------------------------------------------------


def test_daily_rows_use_calendar_shift_and_sort():
    zeynep = _employee("Zeynep")
    ali = _employee("ali")
    records = [_record(zeynep, MONDAY, "09:20", "18:00")]

    rows = build_daily_rows(
        [zeynep, ali], records, MONDAY, date(2026, 3, 3), _calendar()
    )

    assert [(r["date"], r["employee_name"]) for r in rows] == [
        (date(2026, 3, 3), "ali"),
        (date(2026, 3, 3), "Zeynep"),
        (MONDAY, "ali"),
        (MONDAY, "Zeynep"),
    ]
    late_row = rows[3]
    assert late_row["shift"] == "09:00-18:00"
    assert late_row["check_in_status"] == "late"
    assert late_row["worked"] == "08:40"
    assert late_row["diff"] == "-00:20"
    assert late_row["location_shared"] is True
    assert late_row["approval_status"] == "pending"

    missing = rows[2]
    assert missing["check_in"] is None
    assert missing["record_id"] is None
    assert missing["shift"] == "09:00-18:00"


def test_record_shift_overrides_calendar():
    employee = _employee("Ayşe")
    record = _record(employee, MONDAY, "07:00", "15:00", shift_start="07:00", shift_end="15:00")

    rows = build_daily_rows([employee], [record], MONDAY, MONDAY, _calendar())

    assert rows[0]["shift"] == "07:00-15:00"
    assert rows[0]["check_in_status"] == "on_time"
    assert rows[0]["diff"] == "00:00"


def test_holiday_has_no_shift():
    employee = _employee("Ayşe")

    rows = build_daily_rows([employee], [], MONDAY, MONDAY, _calendar(), holidays={MONDAY})

    assert rows[0]["shift"] is None


def test_daily_status_filter_applies():
    on_time = _employee("A")
    late = _employee("B")
    records = [
        _record(on_time, MONDAY, "09:00", "18:00"),
        _record(late, MONDAY, "09:30", "18:00"),
    ]

    rows = build_daily_rows(
        [on_time, late], records, MONDAY, MONDAY, _calendar(), status_filter="late_in"
    )

    assert [r["employee_name"] for r in rows] == ["B"]


# ---------------------------------------------------------------------------
# Weekly view
# ---------------------------------------------------------------------------


def test_weekly_view_grid():
    employee = _employee("Mehmet")
    records = [
        _record(employee, MONDAY, "09:30", "18:00"),
        _record(employee, SATURDAY, "10:00", "12:00"),
    ]

    view = build_weekly_view([employee], records, date(2026, 3, 4), _calendar())

    assert view["week_start"] == MONDAY
    assert view["week_end"] == date(2026, 3, 8)
    assert len(view["days"]) == 7
    cells = view["rows"][0]["cells"]
    assert len(cells) == 7

    assert cells[0]["tone"] == TONE_RED
    assert cells[0]["row"]["check_in"] == "09:30"
    # working day without a record still shows the shift
    assert cells[1]["row"]["shift"] == "09:00-18:00"
    assert cells[1]["tone"] is None
    # weekend with a record has no shift to compare against
    assert cells[5]["row"]["worked"] == "02:00"
    assert cells[5]["row"]["shift"] is None
    # weekend without a record is empty
    assert cells[6]["row"] is None


def test_weekly_rows_sorted_by_name():
    employees = [_employee("zeki"), _employee("Ahmet"), _employee("mert")]

    view = build_weekly_view(employees, [], MONDAY, _calendar())

    assert [r["employee_name"] for r in view["rows"]] == ["Ahmet", "mert", "zeki"]
