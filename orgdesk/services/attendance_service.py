"""
Attendance metrics and views.

Check-in/out times and shifts are "HH:MM" strings. Metrics compare them in
minutes against the thresholds below; the daily and weekly views combine
stored records with the company work calendar.
"""

import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from orgdesk.models.attendance import AttendanceRecord
from orgdesk.models.department import Department
from orgdesk.models.employee import EmployeeProfile
from orgdesk.models.user import User
from orgdesk.schemas.settings import WorkCalendar
from orgdesk.services.calendar_service import (
    attendance_calendar,
    effective_working_time,
    get_or_create_company_settings,
    get_or_create_workspace_settings,
    holiday_dates,
    shift_for_date,
)

logger = structlog.get_logger()

LATE_THRESHOLD_MINUTES = 5
EARLY_THRESHOLD_MINUTES = 5
OVERTIME_THRESHOLD_MINUTES = 20

DEFAULT_RANGE_DAYS = 7

TONE_RED = "red"
TONE_AMBER = "amber"
TONE_BLUE = "blue"


@dataclass
class AttendanceMetrics:
    expected_minutes: Optional[int] = None
    total_minutes: Optional[int] = None
    diff_minutes: Optional[int] = None
    check_in_status: Optional[str] = None
    check_out_status: Optional[str] = None


@dataclass
class Employee:
    id: str
    name: str
    email: Optional[str] = None
    department_id: Optional[str] = None
    department_name: Optional[str] = None


def parse_hhmm(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    parts = value.strip().split(":")
    if len(parts) != 2:
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return None
    return hours * 60 + minutes


def format_minutes(minutes: Optional[int]) -> str:
    if minutes is None:
        return "-"
    sign = "-" if minutes < 0 else ""
    minutes = abs(minutes)
    return f"{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def format_diff(minutes: Optional[int]) -> str:
    """Like format_minutes but with an explicit + on positive values."""
    if minutes is None:
        return "-"
    if minutes > 0:
        return "+" + format_minutes(minutes)
    return format_minutes(minutes)


def compute_metrics(
    shift_start: Optional[str],
    shift_end: Optional[str],
    check_in: Optional[str],
    check_out: Optional[str],
) -> AttendanceMetrics:
    start = parse_hhmm(shift_start)
    end = parse_hhmm(shift_end)
    arrived = parse_hhmm(check_in)
    left = parse_hhmm(check_out)

    metrics = AttendanceMetrics()
    if start is not None and end is not None and end >= start:
        metrics.expected_minutes = end - start
    if arrived is not None and left is not None and left >= arrived:
        metrics.total_minutes = left - arrived
    if metrics.expected_minutes is not None and metrics.total_minutes is not None:
        metrics.diff_minutes = metrics.total_minutes - metrics.expected_minutes

    if start is not None and arrived is not None:
        delta = arrived - start
        if delta > LATE_THRESHOLD_MINUTES:
            metrics.check_in_status = "late"
        elif delta < -EARLY_THRESHOLD_MINUTES:
            metrics.check_in_status = "early"
        else:
            metrics.check_in_status = "on_time"

    if end is not None and left is not None:
        delta = left - end
        if delta < -EARLY_THRESHOLD_MINUTES:
            metrics.check_out_status = "early"
        elif delta > OVERTIME_THRESHOLD_MINUTES:
            metrics.check_out_status = "overtime"
        else:
            metrics.check_out_status = "on_time"

    return metrics


def matches_status_filter(row: dict, status_filter: str) -> bool:
    check_in_status = row.get("check_in_status")
    check_out_status = row.get("check_out_status")
    if status_filter == "late_in":
        return check_in_status == "late"
    if status_filter == "late_out":
        return check_out_status == "overtime"
    if status_filter == "anomalies":
        return check_in_status in ("late", "early") or check_out_status in ("early", "overtime")
    return True


def row_tone(row: Optional[dict]) -> Optional[str]:
    """Weekly cell color: red beats amber beats blue."""
    if not row:
        return None
    if row.get("check_in_status") == "late" or row.get("check_out_status") == "early":
        return TONE_RED
    if row.get("check_in_status") == "early":
        return TONE_AMBER
    if row.get("check_out_status") == "overtime":
        return TONE_BLUE
    return None


def week_bounds(day: date) -> tuple[date, date]:
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


def date_range(start: date, end: date) -> list[date]:
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def default_range(today: Optional[date] = None) -> tuple[date, date]:
    today = today or date.today()
    return today - timedelta(days=DEFAULT_RANGE_DAYS - 1), today


def build_row(
    employee: Employee,
    day: date,
    record: Optional[AttendanceRecord],
    calendar_shift: Optional[tuple[str, str]],
) -> dict:
    shift_start = record.shift_start if record is not None else None
    shift_end = record.shift_end if record is not None else None
    if not (shift_start and shift_end) and calendar_shift:
        shift_start, shift_end = calendar_shift

    check_in = record.check_in if record is not None else None
    check_out = record.check_out if record is not None else None
    metrics = compute_metrics(shift_start, shift_end, check_in, check_out)

    return {
        "employee_id": employee.id,
        "employee_name": employee.name,
        "department_name": employee.department_name,
        "date": day,
        "shift": f"{shift_start}-{shift_end}" if shift_start and shift_end else None,
        "shift_start": shift_start,
        "shift_end": shift_end,
        "check_in": check_in,
        "check_out": check_out,
        "check_in_status": metrics.check_in_status,
        "check_out_status": metrics.check_out_status,
        "worked_minutes": metrics.total_minutes,
        "diff_minutes": metrics.diff_minutes,
        "worked": format_minutes(metrics.total_minutes),
        "diff": format_diff(metrics.diff_minutes),
        "check_in_source": record.check_in_source if record is not None else None,
        "check_out_source": record.check_out_source if record is not None else None,
        "location_shared": bool(record.location_shared) if record is not None else False,
        "approval_status": record.approval_status if record is not None else None,
        "record_id": str(record.id) if record is not None else None,
    }


def _index_records(records: Iterable[AttendanceRecord]) -> dict:
    return {(str(r.employee_id), r.work_date): r for r in records}


def build_daily_rows(
    employees: list[Employee],
    records: Iterable[AttendanceRecord],
    start: date,
    end: date,
    calendar: WorkCalendar,
    holidays: Optional[set[date]] = None,
    status_filter: str = "all",
) -> list[dict]:
    """One row per employee and day, newest day first, then by name."""
    by_key = _index_records(records)
    rows = []
    for day in date_range(start, end):
        calendar_shift = shift_for_date(calendar, day, holidays)
        for employee in employees:
            row = build_row(employee, day, by_key.get((employee.id, day)), calendar_shift)
            if matches_status_filter(row, status_filter):
                rows.append(row)
    rows.sort(key=lambda r: r["employee_name"].lower())
    rows.sort(key=lambda r: r["date"], reverse=True)
    return rows


def build_weekly_view(
    employees: list[Employee],
    records: Iterable[AttendanceRecord],
    week_day: date,
    calendar: WorkCalendar,
    holidays: Optional[set[date]] = None,
) -> dict:
    week_start, week_end = week_bounds(week_day)
    days = date_range(week_start, week_end)
    by_key = _index_records(records)
    shifts = {day: shift_for_date(calendar, day, holidays) for day in days}

    rows = []
    for employee in sorted(employees, key=lambda e: e.name.lower()):
        cells = []
        for day in days:
            record = by_key.get((employee.id, day))
            row = None
            if record is not None or shifts[day] is not None:
                row = build_row(employee, day, record, shifts[day])
            cells.append({"date": day, "row": row, "tone": row_tone(row)})
        rows.append({
            "employee_id": employee.id,
            "employee_name": employee.name,
            "department_name": employee.department_name,
            "cells": cells,
        })
    return {"week_start": week_start, "week_end": week_end, "days": days, "rows": rows}


def scope_condition(user_id: str, is_admin: bool):
    """Owners and admins see everyone; others see themselves and their reports."""
    if is_admin:
        return None
    return or_(
        EmployeeProfile.user_id == uuid.UUID(str(user_id)),
        EmployeeProfile.manager_id == uuid.UUID(str(user_id)),
    )


async def load_employees(
    db: AsyncSession,
    company_id: uuid.UUID,
    user_id: str,
    is_admin: bool,
    department_id: Optional[uuid.UUID] = None,
    employee_ids: Optional[list[uuid.UUID]] = None,
) -> list[Employee]:
    q = (
        select(EmployeeProfile, User, Department)
        .join(User, User.id == EmployeeProfile.user_id)
        .outerjoin(
            Department,
            and_(Department.id == EmployeeProfile.department_id, Department.deleted_at.is_(None)),
        )
        .where(EmployeeProfile.company_id == company_id, EmployeeProfile.is_active.is_(True))
    )
    scope = scope_condition(user_id, is_admin)
    if scope is not None:
        q = q.where(scope)
    if department_id:
        q = q.where(EmployeeProfile.department_id == department_id)
    if employee_ids:
        q = q.where(EmployeeProfile.user_id.in_(employee_ids))

    result = await db.execute(q)
    return [
        Employee(
            id=str(user.id),
            name=user.full_name or user.email,
            email=user.email,
            department_id=str(profile.department_id) if profile.department_id else None,
            department_name=dept.name if dept else None,
        )
        for profile, user, dept in result.all()
    ]


async def employee_in_scope(
    db: AsyncSession, company_id: uuid.UUID, employee_id: uuid.UUID, user_id: str, is_admin: bool
) -> bool:
    q = select(EmployeeProfile.id).where(
        EmployeeProfile.company_id == company_id,
        EmployeeProfile.user_id == employee_id,
        EmployeeProfile.is_active.is_(True),
    )
    scope = scope_condition(user_id, is_admin)
    if scope is not None:
        q = q.where(scope)
    result = await db.execute(q)
    return result.scalar_one_or_none() is not None


async def load_records(
    db: AsyncSession,
    company_id: uuid.UUID,
    start: date,
    end: date,
    employee_ids: Optional[list[str]] = None,
) -> list[AttendanceRecord]:
    q = select(AttendanceRecord).where(
        AttendanceRecord.company_id == company_id,
        AttendanceRecord.work_date >= start,
        AttendanceRecord.work_date <= end,
    )
    if employee_ids is not None:
        if not employee_ids:
            return []
        q = q.where(AttendanceRecord.employee_id.in_([uuid.UUID(e) for e in employee_ids]))
    result = await db.execute(q.order_by(AttendanceRecord.work_date))
    return list(result.scalars().all())


async def load_calendar(
    db: AsyncSession, workspace_id: uuid.UUID, company_id: uuid.UUID
) -> tuple[WorkCalendar, set[date]]:
    workspace_settings = await get_or_create_workspace_settings(db, workspace_id)
    company_settings = await get_or_create_company_settings(db, company_id)
    effective = effective_working_time(company_settings, workspace_settings)
    return attendance_calendar(company_settings, effective), holiday_dates(effective)


async def daily_view(
    db: AsyncSession,
    ctx,
    start: date,
    end: date,
    status_filter: str = "all",
    department_id: Optional[uuid.UUID] = None,
    employee_ids: Optional[list[uuid.UUID]] = None,
) -> list[dict]:
    employees = await load_employees(
        db, ctx.company.id, ctx.user_id, ctx.is_admin, department_id, employee_ids
    )
    records = await load_records(db, ctx.company.id, start, end, [e.id for e in employees])
    calendar, holidays = await load_calendar(db, ctx.workspace.id, ctx.company.id)
    rows = build_daily_rows(employees, records, start, end, calendar, holidays, status_filter)
    logger.info(
        "attendance_daily_built",
        company_id=str(ctx.company.id),
        employees=len(employees),
        rows=len(rows),
    )
    return rows


async def weekly_view(
    db: AsyncSession,
    ctx,
    week_day: date,
    department_id: Optional[uuid.UUID] = None,
    employee_ids: Optional[list[uuid.UUID]] = None,
) -> dict:
    employees = await load_employees(
        db, ctx.company.id, ctx.user_id, ctx.is_admin, department_id, employee_ids
    )
    week_start, week_end = week_bounds(week_day)
    records = await load_records(
        db, ctx.company.id, week_start, week_end, [e.id for e in employees]
    )
    calendar, holidays = await load_calendar(db, ctx.workspace.id, ctx.company.id)
    return build_weekly_view(employees, records, week_day, calendar, holidays)
