from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from orgdesk.database import get_db
from orgdesk.middleware.authorization import require_workspace_roles
from orgdesk.middleware.tenant import (
    CompanyContext,
    WorkspaceContext,
    get_company_context,
    get_workspace_context,
)
from orgdesk.schemas.settings import (
    CompanySettingsResponse,
    CompanySettingsUpdate,
    WorkCalendar,
    WorkCalendarInput,
    WorkspaceSettingsResponse,
    WorkspaceSettingsUpdate,
)
from orgdesk.services import calendar_service
from orgdesk.services.audit_service import create_audit_log, snapshot
from orgdesk.services.tenancy_service import parse_uuid

logger = structlog.get_logger()

# /api/workspaces/{workspace_id}/settings
workspace_router = APIRouter()
# /api/workspaces/{workspace_id}/companies/{company_id}/settings
router = APIRouter()


def _apply(target, changes: dict):
    """Set changed fields; custom_settings is merged so stored calendars survive."""
    for field, val in changes.items():
        if field == "custom_settings" and val is not None:
            val = {**(target.custom_settings or {}), **val}
        setattr(target, field, val)


@workspace_router.get("", response_model=WorkspaceSettingsResponse)
async def get_workspace_settings(
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: AsyncSession = Depends(get_db),
):
    ws_settings = await calendar_service.get_or_create_workspace_settings(db, ctx.workspace.id)
    return WorkspaceSettingsResponse.model_validate(ws_settings)


@workspace_router.patch("", response_model=WorkspaceSettingsResponse)
async def update_workspace_settings(
    body: WorkspaceSettingsUpdate,
    ctx: WorkspaceContext = Depends(get_workspace_context),
    _auth: None = Depends(require_workspace_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db),
):
    ws_settings = await calendar_service.get_or_create_workspace_settings(db, ctx.workspace.id)
    before = snapshot(ws_settings)
    _apply(ws_settings, body.model_dump(mode="json", exclude_unset=True))
    ws_settings.updated_by = parse_uuid(ctx.user_id)
    await db.flush()
    await db.refresh(ws_settings)

    await create_audit_log(
        db,
        workspace_id=str(ctx.workspace.id),
        actor_id=ctx.user_id,
        action="UPDATE",
        entity_type="WORKSPACE_SETTINGS",
        entity_id=str(ws_settings.id),
        before_state=before,
        after_state=snapshot(ws_settings),
        actor_email=ctx.user.get("email"),
    )
    return WorkspaceSettingsResponse.model_validate(ws_settings)


async def _load(db: AsyncSession, ctx: CompanyContext):
    ws_settings = await calendar_service.get_or_create_workspace_settings(db, ctx.workspace.id)
    company_settings = await calendar_service.get_or_create_company_settings(db, ctx.company.id)
    effective = calendar_service.effective_working_time(company_settings, ws_settings)
    return company_settings, effective


@router.get("", response_model=CompanySettingsResponse)
async def get_company_settings(
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    company_settings, effective = await _load(db, ctx)
    response = CompanySettingsResponse.model_validate(company_settings)
    response.effective = effective
    return response


@router.patch("", response_model=CompanySettingsResponse)
async def update_company_settings(
    body: CompanySettingsUpdate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_workspace_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db),
):
    company_settings, _ = await _load(db, ctx)
    before = snapshot(company_settings)
    _apply(company_settings, body.model_dump(mode="json", exclude_unset=True))
    company_settings.updated_by = parse_uuid(ctx.user_id)
    await db.flush()
    await db.refresh(company_settings)

    await create_audit_log(
        db,
        workspace_id=str(ctx.workspace.id),
        company_id=str(ctx.company.id),
        actor_id=ctx.user_id,
        action="UPDATE",
        entity_type="COMPANY_SETTINGS",
        entity_id=str(company_settings.id),
        before_state=before,
        after_state=snapshot(company_settings),
        actor_email=ctx.user.get("email"),
    )

    _, effective = await _load(db, ctx)
    response = CompanySettingsResponse.model_validate(company_settings)
    response.effective = effective
    return response


# ---------- work calendars ----------

async def _audit_calendars(db: AsyncSession, ctx: CompanyContext, company_settings, before: dict):
    await create_audit_log(
        db,
        workspace_id=str(ctx.workspace.id),
        company_id=str(ctx.company.id),
        actor_id=ctx.user_id,
        action="UPDATE",
        entity_type="COMPANY_SETTINGS",
        entity_id=str(company_settings.id),
        before_state=before,
        after_state=snapshot(company_settings),
        actor_email=ctx.user.get("email"),
    )


def _calendar_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Calendar not found")


@router.get("/calendars", response_model=List[WorkCalendar])
async def list_calendars(
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    company_settings, effective = await _load(db, ctx)
    return calendar_service.list_calendars(company_settings, effective)


@router.post("/calendars", response_model=WorkCalendar, status_code=status.HTTP_201_CREATED)
async def create_calendar(
    body: WorkCalendarInput,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_workspace_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db),
):
    company_settings, _ = await _load(db, ctx)
    before = snapshot(company_settings)
    calendar = calendar_service.add_calendar(company_settings, body)
    await db.flush()
    await _audit_calendars(db, ctx, company_settings, before)
    logger.info("work_calendar_created", company_id=str(ctx.company.id), calendar_id=calendar.id)
    return calendar


@router.put("/calendars/{calendar_id}", response_model=WorkCalendar)
async def replace_calendar(
    calendar_id: str,
    body: WorkCalendarInput,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_workspace_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db),
):
    company_settings, _ = await _load(db, ctx)
    before = snapshot(company_settings)
    calendar = calendar_service.replace_calendar(company_settings, calendar_id, body)
    if calendar is None:
        raise _calendar_not_found()
    await db.flush()
    await _audit_calendars(db, ctx, company_settings, before)
    return calendar


@router.delete("/calendars/{calendar_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_calendar(
    calendar_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_workspace_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db),
):
    company_settings, _ = await _load(db, ctx)
    before = snapshot(company_settings)
    if not calendar_service.remove_calendar(company_settings, calendar_id):
        raise _calendar_not_found()
    await db.flush()
    await _audit_calendars(db, ctx, company_settings, before)
    logger.info("work_calendar_deleted", company_id=str(ctx.company.id), calendar_id=calendar_id)


@router.put("/calendars/{calendar_id}/default", response_model=List[WorkCalendar])
async def set_default_calendar(
    calendar_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_workspace_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db),
):
    company_settings, effective = await _load(db, ctx)
    before = snapshot(company_settings)
    if not calendar_service.set_default_calendar(company_settings, calendar_id):
        raise _calendar_not_found()
    await db.flush()
    await _audit_calendars(db, ctx, company_settings, before)
    return calendar_service.list_calendars(company_settings, effective)
