import csv
import io
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from orgdesk.database import get_db
from orgdesk.middleware.authorization import require_workspace_roles
from orgdesk.middleware.tenant import WorkspaceContext, get_workspace_context
from orgdesk.models.audit_log import AuditLog
from orgdesk.schemas.audit_log import AuditLogResponse
from orgdesk.schemas.common import PaginatedResponse, build_pagination
from orgdesk.services.tenancy_service import parse_uuid

router = APIRouter()


def _conditions(
    workspace_id,
    entity_type: Optional[str],
    entity_id: Optional[str],
    company_id: Optional[str],
    actor_id: Optional[str],
    from_date: Optional[date],
    to_date: Optional[date],
) -> list:
    conditions = [AuditLog.workspace_id == workspace_id]
    if entity_type:
        conditions.append(AuditLog.entity_type == entity_type.upper())
    if entity_id:
        conditions.append(AuditLog.entity_id == parse_uuid(entity_id))
    if company_id:
        conditions.append(AuditLog.company_id == parse_uuid(company_id))
    if actor_id:
        conditions.append(AuditLog.actor_id == parse_uuid(actor_id))
    if from_date:
        conditions.append(AuditLog.created_at >= datetime.combine(from_date, datetime.min.time()))
    if to_date:
        conditions.append(AuditLog.created_at <= datetime.combine(to_date, datetime.max.time()))
    return conditions


@router.get("", response_model=PaginatedResponse[AuditLogResponse])
async def list_audit_logs(
    entity_type: Optional[str] = Query(None),
    entity_id: Optional[str] = Query(None),
    company_id: Optional[str] = Query(None),
    actor_id: Optional[str] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    page: int = Query(1, ge=1, le=1000),
    limit: int = Query(20, ge=1, le=50),
    ctx: WorkspaceContext = Depends(get_workspace_context),
    _auth: None = Depends(require_workspace_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db),
):
    conditions = _conditions(
        ctx.workspace.id, entity_type, entity_id, company_id, actor_id, from_date, to_date
    )
    total = (await db.execute(select(func.count(AuditLog.id)).where(*conditions))).scalar() or 0
    result = await db.execute(
        select(AuditLog)
        .where(*conditions)
        .order_by(AuditLog.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    items = [AuditLogResponse.model_validate(log) for log in result.scalars().all()]
    return PaginatedResponse(data=items, pagination=build_pagination(page, limit, total))


@router.get("/export")
async def export_audit_logs(
    entity_type: Optional[str] = Query(None),
    entity_id: Optional[str] = Query(None),
    company_id: Optional[str] = Query(None),
    actor_id: Optional[str] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    ctx: WorkspaceContext = Depends(get_workspace_context),
    _auth: None = Depends(require_workspace_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db),
):
    """Export audit logs as CSV. Max 10,000 rows."""
    conditions = _conditions(
        ctx.workspace.id, entity_type, entity_id, company_id, actor_id, from_date, to_date
    )
    result = await db.execute(
        select(AuditLog).where(*conditions).order_by(AuditLog.created_at.desc()).limit(10_000)
    )
    logs = result.scalars().all()

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([
        "id", "company_id", "actor_email", "action", "entity_type", "entity_id",
        "changed_fields", "created_at",
    ])
    for log in logs:
        writer.writerow([
            str(log.id),
            str(log.company_id) if log.company_id else "",
            log.actor_email or "",
            log.action,
            log.entity_type,
            str(log.entity_id),
            ",".join(log.changed_fields or []),
            log.created_at.isoformat() if log.created_at else "",
        ])

    filename = f"audit_logs_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}.csv"
    return Response(
        content=output.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
