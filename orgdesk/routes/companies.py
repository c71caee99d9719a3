from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from orgdesk.database import get_db
from orgdesk.middleware.authorization import require_workspace_roles, require_write_access
from orgdesk.middleware.tenant import (
    CompanyContext,
    WorkspaceContext,
    get_company_context,
    get_workspace_context,
)
from orgdesk.models.company import Company
from orgdesk.models.workspace import WorkspaceCompany
from orgdesk.schemas.common import PaginatedResponse, build_pagination, to_orm_fields
from orgdesk.schemas.company import CompanyCreate, CompanyResponse, CompanyUpdate
from orgdesk.services.audit_service import create_audit_log, snapshot
from orgdesk.services.org_chart_service import load_org_chart
from orgdesk.services.tenancy_service import parse_uuid, slugify_company_first_word

logger = structlog.get_logger()
router = APIRouter()


def _to_response(company: Company) -> CompanyResponse:
    response = CompanyResponse.model_validate(company)
    response.slug = slugify_company_first_word(company.name)
    return response


@router.get("", response_model=PaginatedResponse[CompanyResponse])
async def list_companies(
    page: int = Query(1, ge=1, le=1000),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
    company_status: Optional[str] = Query(None, alias="status"),
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: AsyncSession = Depends(get_db),
):
    conditions = [
        WorkspaceCompany.workspace_id == ctx.workspace.id,
        Company.deleted_at.is_(None),
    ]
    if company_status:
        conditions.append(Company.status == company_status)
    if search:
        pattern = f"%{search}%"
        conditions.append(
            or_(
                Company.name.ilike(pattern),
                Company.full_name.ilike(pattern),
                Company.tax_number.ilike(pattern),
            )
        )

    base = select(Company).join(WorkspaceCompany, WorkspaceCompany.company_id == Company.id)
    count_q = (
        select(func.count(Company.id))
        .join(WorkspaceCompany, WorkspaceCompany.company_id == Company.id)
        .where(*conditions)
    )
    total = (await db.execute(count_q)).scalar() or 0
    result = await db.execute(
        base.where(*conditions)
        .order_by(Company.name)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    items = [_to_response(c) for c in result.scalars().all()]
    return PaginatedResponse(data=items, pagination=build_pagination(page, limit, total))


@router.post("", response_model=CompanyResponse, status_code=status.HTTP_201_CREATED)
async def create_company(
    body: CompanyCreate,
    ctx: WorkspaceContext = Depends(get_workspace_context),
    _auth: None = Depends(require_workspace_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db),
):
    actor = parse_uuid(ctx.user_id)
    company = Company(
        **to_orm_fields(body.model_dump()),
        created_by=actor,
        updated_by=actor,
    )
    db.add(company)
    await db.flush()

    db.add(WorkspaceCompany(workspace_id=ctx.workspace.id, company_id=company.id, added_by=actor))
    await db.flush()
    await db.refresh(company)

    await create_audit_log(
        db,
        workspace_id=str(ctx.workspace.id),
        company_id=str(company.id),
        actor_id=ctx.user_id,
        action="CREATE",
        entity_type="COMPANY",
        entity_id=str(company.id),
        after_state=snapshot(company),
        actor_email=ctx.user.get("email"),
    )
    logger.info("company_created", company_id=str(company.id), workspace_id=str(ctx.workspace.id))
    return _to_response(company)


@router.get("/{company_id}", response_model=CompanyResponse)
async def get_company(ctx: CompanyContext = Depends(get_company_context)):
    return _to_response(ctx.company)


@router.put("/{company_id}", response_model=CompanyResponse)
async def update_company(
    body: CompanyUpdate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    company = ctx.company
    before = snapshot(company)
    for field, val in to_orm_fields(body.model_dump(exclude_unset=True)).items():
        setattr(company, field, val)
    company.updated_by = parse_uuid(ctx.user_id)
    await db.flush()
    await db.refresh(company)

    await create_audit_log(
        db,
        workspace_id=str(ctx.workspace.id),
        company_id=str(company.id),
        actor_id=ctx.user_id,
        action="UPDATE",
        entity_type="COMPANY",
        entity_id=str(company.id),
        before_state=before,
        after_state=snapshot(company),
        actor_email=ctx.user.get("email"),
    )
    return _to_response(company)


@router.delete("/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_company(
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_workspace_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db),
):
    company = ctx.company
    before = snapshot(company)
    company.deleted_at = datetime.utcnow()
    company.updated_by = parse_uuid(ctx.user_id)
    await db.flush()

    await create_audit_log(
        db,
        workspace_id=str(ctx.workspace.id),
        company_id=str(company.id),
        actor_id=ctx.user_id,
        action="DELETE",
        entity_type="COMPANY",
        entity_id=str(company.id),
        before_state=before,
        actor_email=ctx.user.get("email"),
    )
    logger.info("company_deleted", company_id=str(company.id))


@router.get("/{company_id}/org-chart")
async def get_org_chart(
    expanded: Optional[List[str]] = Query(None),
    expand_all: bool = Query(False),
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    """Nodes and edges of the company's organization chart."""
    return await load_org_chart(db, ctx.company, expanded=expanded, expand_all=expand_all)
