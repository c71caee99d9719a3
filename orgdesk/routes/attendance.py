from datetime import date, datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from orgdesk.database import get_db
from orgdesk.middleware.authorization import require_workspace_roles, require_write_access
from orgdesk.middleware.tenant import CompanyContext, get_company_context
from orgdesk.models.attendance import AttendanceRecord
from orgdesk.schemas.attendance import (
    AttendanceRecordResponse,
    AttendanceRecordUpsert,
    DailyRowResponse,
    StatusFilter,
    WeeklyViewResponse,
)
from orgdesk.services import attendance_service
from orgdesk.services.attendance_export import ExportMeta, render_export
from orgdesk.services.audit_service import create_audit_log, snapshot
from orgdesk.services.tenancy_service import parse_uuid

logger = structlog.get_logger()
router = APIRouter()

MAX_RANGE_DAYS = 93


def _resolve_range(start: Optional[date], end: Optional[date]) -> tuple[date, date]:
    if start is None and end is None:
        return attendance_service.default_range()
    start = start or end
    end = end or start
    if end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")
    if (end - start).days >= MAX_RANGE_DAYS:
        raise HTTPException(
            status_code=400,
            detail=f"Date range cannot exceed {MAX_RANGE_DAYS} days",
        )
    return start, end


def _parse_ids(values: Optional[List[str]], field: str):
    if not values:
        return None
    parsed = [parse_uuid(v) for v in values]
    if any(p is None for p in parsed):
        raise HTTPException(status_code=400, detail=f"Invalid {field}")
    return parsed


def _parse_id(value: Optional[str], field: str):
    if not value:
        return None
    parsed = parse_uuid(value)
    if parsed is None:
        raise HTTPException(status_code=400, detail=f"Invalid {field}")
    return parsed


async def _get_record(db: AsyncSession, ctx: CompanyContext, record_id: str) -> AttendanceRecord:
    parsed = parse_uuid(record_id)
    record = None
    if parsed is not None:
        result = await db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.id == parsed,
                AttendanceRecord.company_id == ctx.company.id,
            )
        )
        record = result.scalar_one_or_none()
    if not record:
        raise HTTPException(status_code=404, detail="Attendance record not found")
    return record


async def _audit(db: AsyncSession, ctx: CompanyContext, action: str, record_id, before=None, after=None):
    await create_audit_log(
        db,
        workspace_id=str(ctx.workspace.id),
        company_id=str(ctx.company.id),
        actor_id=ctx.user_id,
        action=action,
        entity_type="ATTENDANCE_RECORD",
        entity_id=str(record_id),
        before_state=before,
        after_state=after,
        actor_email=ctx.user.get("email"),
    )


@router.get("/records", response_model=List[AttendanceRecordResponse])
async def list_records(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    employee_id: Optional[List[str]] = Query(None),
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    start, end = _resolve_range(start, end)
    employees = await attendance_service.load_employees(
        db,
        ctx.company.id,
        ctx.user_id,
        ctx.is_admin,
        employee_ids=_parse_ids(employee_id, "employee_id"),
    )
    records = await attendance_service.load_records(
        db, ctx.company.id, start, end, [e.id for e in employees]
    )
    return [AttendanceRecordResponse.model_validate(r) for r in records]


@router.put("/records", response_model=AttendanceRecordResponse)
async def upsert_record(
    body: AttendanceRecordUpsert,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    """Create or edit the record for (employee, work_date); any edit resets approval."""
    in_scope = await attendance_service.employee_in_scope(
        db, ctx.company.id, body.employee_id, ctx.user_id, ctx.is_admin
    )
    if not in_scope:
        if ctx.is_admin:
            raise HTTPException(
                status_code=400,
                detail="Employee has no active profile in this company",
            )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You cannot edit attendance for this employee",
        )

    result = await db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.company_id == ctx.company.id,
            AttendanceRecord.employee_id == body.employee_id,
            AttendanceRecord.work_date == body.work_date,
        )
    )
    record = result.scalar_one_or_none()
    changes = body.model_dump(exclude_unset=True, exclude={"employee_id", "work_date"})
    actor = parse_uuid(ctx.user_id)

    if record is None:
        record = AttendanceRecord(
            company_id=ctx.company.id,
            employee_id=body.employee_id,
            work_date=body.work_date,
        )
        db.add(record)
        before = None
        action = "CREATE"
    else:
        before = snapshot(record)
        action = "UPDATE"

    for field, val in changes.items():
        setattr(record, field, val)
    record.approval_status = "pending"
    record.approved_by = None
    record.approved_at = None
    record.updated_by = actor
    await db.flush()
    await db.refresh(record)

    await _audit(db, ctx, action, record.id, before=before, after=snapshot(record))
    logger.info(
        "attendance_record_saved",
        record_id=str(record.id),
        employee_id=str(body.employee_id),
        work_date=str(body.work_date),
        action=action,
    )
    return AttendanceRecordResponse.model_validate(record)


async def _set_approval(db: AsyncSession, ctx: CompanyContext, record_id: str, approval: str, action: str):
    record = await _get_record(db, ctx, record_id)
    before = snapshot(record)
    record.approval_status = approval
    record.approved_by = parse_uuid(ctx.user_id)
    record.approved_at = datetime.utcnow()
    await db.flush()
    await db.refresh(record)
    await _audit(db, ctx, action, record.id, before=before, after=snapshot(record))
    logger.info("attendance_record_reviewed", record_id=str(record.id), approval_status=approval)
    return AttendanceRecordResponse.model_validate(record)


@router.post("/records/{record_id}/approve", response_model=AttendanceRecordResponse)
async def approve_record(
    record_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_workspace_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db),
):
    return await _set_approval(db, ctx, record_id, "approved", "APPROVE")


@router.post("/records/{record_id}/reject", response_model=AttendanceRecordResponse)
async def reject_record(
    record_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_workspace_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db),
):
    return await _set_approval(db, ctx, record_id, "rejected", "REJECT")


@router.get("/daily", response_model=List[DailyRowResponse])
async def get_daily(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    status_filter: StatusFilter = Query("all", alias="status"),
    department_id: Optional[str] = Query(None),
    employee_id: Optional[List[str]] = Query(None),
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    start, end = _resolve_range(start, end)
    return await attendance_service.daily_view(
        db,
        ctx,
        start,
        end,
        status_filter=status_filter,
        department_id=_parse_id(department_id, "department_id"),
        employee_ids=_parse_ids(employee_id, "employee_id"),
    )


@router.get("/weekly", response_model=WeeklyViewResponse)
async def get_weekly(
    week: Optional[date] = Query(None, description="Any day of the week to show"),
    department_id: Optional[str] = Query(None),
    employee_id: Optional[List[str]] = Query(None),
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    return await attendance_service.weekly_view(
        db,
        ctx,
        week or date.today(),
        department_id=_parse_id(department_id, "department_id"),
        employee_ids=_parse_ids(employee_id, "employee_id"),
    )


@router.get("/export")
async def export_attendance(
    view: Literal["daily", "weekly"] = Query("daily"),
    export_format: Literal["pdf", "xlsx"] = Query("pdf", alias="format"),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    week: Optional[date] = Query(None),
    status_filter: StatusFilter = Query("all", alias="status"),
    department_id: Optional[str] = Query(None),
    employee_id: Optional[List[str]] = Query(None),
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    department = _parse_id(department_id, "department_id")
    employee_ids = _parse_ids(employee_id, "employee_id")

    if view == "weekly":
        payload = await attendance_service.weekly_view(
            db, ctx, week or start or date.today(), department, employee_ids
        )
        period_start, period_end = payload["week_start"], payload["week_end"]
        employee_count = len(payload["rows"])
    else:
        period_start, period_end = _resolve_range(start, end)
        payload = await attendance_service.daily_view(
            db, ctx, period_start, period_end, status_filter, department, employee_ids
        )
        employee_count = len({row["employee_id"] for row in payload})

    meta = ExportMeta(
        company_name=ctx.company.name,
        workspace_name=ctx.workspace.name,
        start=period_start,
        end=period_end,
        employee_count=employee_count,
    )
    content, media_type, filename = render_export(view, export_format, payload, meta)
    logger.info(
        "attendance_exported",
        company_id=str(ctx.company.id),
        view=view,
        format=export_format,
        size=len(content),
    )
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
