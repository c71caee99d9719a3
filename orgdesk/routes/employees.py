from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from orgdesk.database import get_db
from orgdesk.middleware.authorization import require_workspace_roles
from orgdesk.middleware.tenant import CompanyContext, get_company_context
from orgdesk.models.department import Department
from orgdesk.models.employee import EmployeeProfile
from orgdesk.models.user import User
from orgdesk.schemas.employee import EmployeeCreate, EmployeeResponse, EmployeeUpdate
from orgdesk.services.audit_service import create_audit_log, snapshot
from orgdesk.services.tenancy_service import get_member_role, parse_uuid

logger = structlog.get_logger()
router = APIRouter()


def _to_response(profile: EmployeeProfile, user: User, dept: Optional[Department]) -> EmployeeResponse:
    return EmployeeResponse(
        id=profile.id,
        user_id=profile.user_id,
        name=user.full_name,
        email=user.email,
        employee_number=profile.employee_number,
        position=profile.position,
        department_id=profile.department_id,
        department_name=dept.name if dept else None,
        manager_id=profile.manager_id,
        employment_type=profile.employment_type,
        start_date=profile.start_date,
        end_date=profile.end_date,
        is_active=profile.is_active,
        created_at=profile.created_at,
    )


def _profiles_query(company_id):
    return (
        select(EmployeeProfile, User, Department)
        .join(User, User.id == EmployeeProfile.user_id)
        .outerjoin(
            Department,
            and_(Department.id == EmployeeProfile.department_id, Department.deleted_at.is_(None)),
        )
        .where(EmployeeProfile.company_id == company_id)
    )


async def _get_employee(db: AsyncSession, ctx: CompanyContext, employee_id: str):
    parsed = parse_uuid(employee_id)
    row = None
    if parsed is not None:
        result = await db.execute(
            _profiles_query(ctx.company.id).where(EmployeeProfile.id == parsed)
        )
        row = result.first()
    if row is None:
        raise HTTPException(status_code=404, detail="Employee not found")
    return row


async def _check_department(db: AsyncSession, ctx: CompanyContext, department_id) -> None:
    if department_id is None:
        return
    result = await db.execute(
        select(Department.id).where(
            Department.id == department_id,
            Department.company_id == ctx.company.id,
            Department.deleted_at.is_(None),
        )
    )
    if result.scalar_one_or_none() is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Department does not belong to this company",
        )


async def _check_member(db: AsyncSession, ctx: CompanyContext, user_id, field: str) -> None:
    if user_id is None:
        return
    if await get_member_role(db, ctx.workspace, str(user_id)) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{field} must be a member of this workspace",
        )


async def _audit(db: AsyncSession, ctx: CompanyContext, action: str, profile_id, before=None, after=None):
    await create_audit_log(
        db,
        workspace_id=str(ctx.workspace.id),
        company_id=str(ctx.company.id),
        actor_id=ctx.user_id,
        action=action,
        entity_type="EMPLOYEE",
        entity_id=str(profile_id),
        before_state=before,
        after_state=after,
        actor_email=ctx.user.get("email"),
    )


@router.get("", response_model=List[EmployeeResponse])
async def list_employees(
    department_id: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    q = _profiles_query(ctx.company.id)
    if not include_inactive:
        q = q.where(EmployeeProfile.is_active.is_(True))
    if department_id:
        q = q.where(EmployeeProfile.department_id == parse_uuid(department_id))
    result = await db.execute(q.order_by(User.first_name, User.last_name, User.email))
    return [_to_response(profile, user, dept) for profile, user, dept in result.all()]


@router.post("", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    body: EmployeeCreate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_workspace_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db),
):
    await _check_member(db, ctx, body.user_id, "user_id")
    await _check_member(db, ctx, body.manager_id, "manager_id")
    await _check_department(db, ctx, body.department_id)

    profile = EmployeeProfile(
        workspace_id=ctx.workspace.id,
        company_id=ctx.company.id,
        **body.model_dump(),
    )
    db.add(profile)
    await db.flush()

    await _audit(db, ctx, "CREATE", profile.id, after=snapshot(profile))
    logger.info("employee_created", profile_id=str(profile.id), company_id=str(ctx.company.id))
    profile, user, dept = await _get_employee(db, ctx, str(profile.id))
    return _to_response(profile, user, dept)


@router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    profile, user, dept = await _get_employee(db, ctx, employee_id)
    return _to_response(profile, user, dept)


@router.put("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: str,
    body: EmployeeUpdate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_workspace_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db),
):
    profile, _, _ = await _get_employee(db, ctx, employee_id)
    changes = body.model_dump(exclude_unset=True)
    if changes.get("department_id") is not None:
        await _check_department(db, ctx, changes["department_id"])
    if changes.get("manager_id") is not None:
        if changes["manager_id"] == profile.user_id:
            raise HTTPException(status_code=400, detail="An employee cannot manage themselves")
        await _check_member(db, ctx, changes["manager_id"], "manager_id")

    start = changes.get("start_date", profile.start_date)
    end = changes.get("end_date", profile.end_date)
    if start and end and end < start:
        raise HTTPException(status_code=400, detail="end_date cannot be before start_date")

    before = snapshot(profile)
    for field, val in changes.items():
        setattr(profile, field, val)
    await db.flush()

    await _audit(db, ctx, "UPDATE", profile.id, before=before, after=snapshot(profile))
    profile, user, dept = await _get_employee(db, ctx, employee_id)
    return _to_response(profile, user, dept)


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_employee(
    employee_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_workspace_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db),
):
    profile, _, _ = await _get_employee(db, ctx, employee_id)
    before = snapshot(profile)
    profile.is_active = False
    await db.flush()
    await _audit(db, ctx, "DELETE", profile.id, before=before, after=snapshot(profile))
    logger.info("employee_deactivated", profile_id=str(profile.id))
