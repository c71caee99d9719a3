from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from orgdesk.database import get_db
from orgdesk.middleware.authorization import require_write_access
from orgdesk.middleware.tenant import CompanyContext, get_company_context
from orgdesk.models.department import Department, Unit
from orgdesk.models.user import User
from orgdesk.schemas.department import (
    DepartmentCreate,
    DepartmentResponse,
    DepartmentUpdate,
    UnitCreate,
    UnitResponse,
    UnitUpdate,
)
from orgdesk.services.audit_service import create_audit_log, snapshot
from orgdesk.services.department_service import (
    check_parent,
    check_unique,
    check_unit_name,
    unit_counts,
)
from orgdesk.services.tenancy_service import parse_uuid

logger = structlog.get_logger()
router = APIRouter()


def _to_response(d: Department, manager: User = None, unit_count: int = 0) -> DepartmentResponse:
    response = DepartmentResponse.model_validate(d)
    response.manager_name = manager.full_name if manager else None
    response.unit_count = unit_count
    return response


def _unit_response(u: Unit, lead: User = None) -> UnitResponse:
    response = UnitResponse.model_validate(u)
    if lead:
        response.lead_name = lead.full_name
        response.lead_email = lead.email
    return response


async def _get_department(db: AsyncSession, ctx: CompanyContext, dept_id: str) -> Department:
    parsed = parse_uuid(dept_id)
    dept = None
    if parsed is not None:
        result = await db.execute(
            select(Department).where(
                Department.id == parsed,
                Department.company_id == ctx.company.id,
                Department.deleted_at.is_(None),
            )
        )
        dept = result.scalar_one_or_none()
    if not dept:
        raise HTTPException(status_code=404, detail="Department not found")
    return dept


async def _department_with_details(db: AsyncSession, dept: Department) -> DepartmentResponse:
    manager = await db.get(User, dept.manager_id) if dept.manager_id else None
    counts = await unit_counts(db, [dept.id])
    return _to_response(dept, manager, counts.get(dept.id, 0))


async def _audit(db: AsyncSession, ctx: CompanyContext, action: str, entity_type: str, entity_id, before=None, after=None):
    await create_audit_log(
        db,
        workspace_id=str(ctx.workspace.id),
        company_id=str(ctx.company.id),
        actor_id=ctx.user_id,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        before_state=before,
        after_state=after,
        actor_email=ctx.user.get("email"),
    )


@router.get("", response_model=List[DepartmentResponse])
async def list_departments(
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Department, User)
        .outerjoin(User, User.id == Department.manager_id)
        .where(Department.company_id == ctx.company.id, Department.deleted_at.is_(None))
        .order_by(Department.name)
    )
    rows = result.all()
    counts = await unit_counts(db, [dept.id for dept, _ in rows])
    return [_to_response(dept, manager, counts.get(dept.id, 0)) for dept, manager in rows]


@router.post("", response_model=DepartmentResponse, status_code=status.HTTP_201_CREATED)
async def create_department(
    body: DepartmentCreate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    await check_unique(db, ctx.company.id, body.name, body.code)
    if body.parent_department_id:
        await check_parent(db, ctx.company.id, body.parent_department_id)

    actor = parse_uuid(ctx.user_id)
    data = body.model_dump()
    data["goals"] = body.goals.model_dump() if body.goals else {}
    dept = Department(company_id=ctx.company.id, created_by=actor, updated_by=actor, **data)
    db.add(dept)
    await db.flush()
    await db.refresh(dept)

    await _audit(db, ctx, "CREATE", "DEPARTMENT", dept.id, after=snapshot(dept))
    logger.info("department_created", department_id=str(dept.id), company_id=str(ctx.company.id))
    return await _department_with_details(db, dept)


@router.get("/{dept_id}", response_model=DepartmentResponse)
async def get_department(
    dept_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    dept = await _get_department(db, ctx, dept_id)
    return await _department_with_details(db, dept)


@router.put("/{dept_id}", response_model=DepartmentResponse)
async def update_department(
    dept_id: str,
    body: DepartmentUpdate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    dept = await _get_department(db, ctx, dept_id)
    changes = body.model_dump(exclude_unset=True)

    await check_unique(db, ctx.company.id, changes.get("name"), changes.get("code"), exclude_id=dept.id)
    if changes.get("parent_department_id"):
        await check_parent(db, ctx.company.id, changes["parent_department_id"], dept.id)

    before = snapshot(dept)
    for field, val in changes.items():
        setattr(dept, field, val)
    dept.updated_by = parse_uuid(ctx.user_id)
    await db.flush()
    await db.refresh(dept)

    await _audit(db, ctx, "UPDATE", "DEPARTMENT", dept.id, before=before, after=snapshot(dept))
    return await _department_with_details(db, dept)


@router.delete("/{dept_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_department(
    dept_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    dept = await _get_department(db, ctx, dept_id)
    before = snapshot(dept)
    now = datetime.utcnow()
    dept.deleted_at = now
    await db.execute(
        update(Unit)
        .where(Unit.department_id == dept.id, Unit.deleted_at.is_(None))
        .values(deleted_at=now)
    )
    await db.flush()

    await _audit(db, ctx, "DELETE", "DEPARTMENT", dept.id, before=before)
    logger.info("department_deleted", department_id=str(dept.id))


@router.get("/{dept_id}/units", response_model=List[UnitResponse])
async def list_units(
    dept_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    dept = await _get_department(db, ctx, dept_id)
    result = await db.execute(
        select(Unit, User)
        .outerjoin(User, User.id == Unit.lead_id)
        .where(Unit.department_id == dept.id, Unit.deleted_at.is_(None))
        .order_by(Unit.created_at)
    )
    return [_unit_response(unit, lead) for unit, lead in result.all()]


@router.post("/{dept_id}/units", response_model=UnitResponse, status_code=status.HTTP_201_CREATED)
async def create_unit(
    dept_id: str,
    body: UnitCreate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    dept = await _get_department(db, ctx, dept_id)
    await check_unit_name(db, dept.id, body.name)

    unit = Unit(department_id=dept.id, **body.model_dump())
    db.add(unit)
    await db.flush()
    await db.refresh(unit)

    await _audit(db, ctx, "CREATE", "UNIT", unit.id, after=snapshot(unit))
    lead = await db.get(User, unit.lead_id) if unit.lead_id else None
    return _unit_response(unit, lead)


async def _get_unit(db: AsyncSession, dept: Department, unit_id: str) -> Unit:
    parsed = parse_uuid(unit_id)
    unit = None
    if parsed is not None:
        result = await db.execute(
            select(Unit).where(
                Unit.id == parsed,
                Unit.department_id == dept.id,
                Unit.deleted_at.is_(None),
            )
        )
        unit = result.scalar_one_or_none()
    if not unit:
        raise HTTPException(status_code=404, detail="Unit not found")
    return unit


@router.put("/{dept_id}/units/{unit_id}", response_model=UnitResponse)
async def update_unit(
    dept_id: str,
    unit_id: str,
    body: UnitUpdate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    dept = await _get_department(db, ctx, dept_id)
    unit = await _get_unit(db, dept, unit_id)
    changes = body.model_dump(exclude_unset=True)
    if changes.get("name"):
        await check_unit_name(db, dept.id, changes["name"], exclude_id=unit.id)

    before = snapshot(unit)
    for field, val in changes.items():
        setattr(unit, field, val)
    await db.flush()
    await db.refresh(unit)

    await _audit(db, ctx, "UPDATE", "UNIT", unit.id, before=before, after=snapshot(unit))
    lead = await db.get(User, unit.lead_id) if unit.lead_id else None
    return _unit_response(unit, lead)


@router.delete("/{dept_id}/units/{unit_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_unit(
    dept_id: str,
    unit_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    dept = await _get_department(db, ctx, dept_id)
    unit = await _get_unit(db, dept, unit_id)
    before = snapshot(unit)
    unit.deleted_at = datetime.utcnow()
    await db.flush()
    await _audit(db, ctx, "DELETE", "UNIT", unit.id, before=before)
