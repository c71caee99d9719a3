from datetime import datetime
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from orgdesk.database import get_db
from orgdesk.middleware.authorization import require_write_access
from orgdesk.middleware.tenant import CompanyContext, get_company_context
from orgdesk.models.location import Location
from orgdesk.schemas.common import to_orm_fields
from orgdesk.schemas.location import LocationCreate, LocationResponse, LocationUpdate
from orgdesk.services.audit_service import create_audit_log, snapshot
from orgdesk.services.tenancy_service import parse_uuid

logger = structlog.get_logger()
router = APIRouter()


async def _get_location(db: AsyncSession, ctx: CompanyContext, location_id: str) -> Location:
    parsed = parse_uuid(location_id)
    location = None
    if parsed is not None:
        result = await db.execute(
            select(Location).where(
                Location.id == parsed,
                Location.company_id == ctx.company.id,
                Location.deleted_at.is_(None),
            )
        )
        location = result.scalar_one_or_none()
    if not location:
        raise HTTPException(status_code=404, detail="Location not found")
    return location


async def _check_unique(
    db: AsyncSession,
    company_id: uuid.UUID,
    name: Optional[str],
    code: Optional[str],
    exclude_id: Optional[uuid.UUID] = None,
):
    for column, value, message in (
        (Location.name, name, "Location name already exists"),
        (Location.code, code, "Location code already exists"),
    ):
        if not value:
            continue
        q = select(Location.id).where(
            Location.company_id == company_id,
            column == value,
            Location.deleted_at.is_(None),
        )
        if exclude_id is not None:
            q = q.where(Location.id != exclude_id)
        if (await db.execute(q)).first() is not None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


async def _clear_headquarters(
    db: AsyncSession, company_id: uuid.UUID, keep_id: Optional[uuid.UUID] = None
):
    stmt = update(Location).where(
        Location.company_id == company_id,
        Location.is_headquarters.is_(True),
        Location.deleted_at.is_(None),
    )
    if keep_id is not None:
        stmt = stmt.where(Location.id != keep_id)
    await db.execute(stmt.values(is_headquarters=False))


@router.get("", response_model=List[LocationResponse])
async def list_locations(
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Location)
        .where(Location.company_id == ctx.company.id, Location.deleted_at.is_(None))
        .order_by(Location.is_headquarters.desc(), Location.name)
    )
    return [LocationResponse.model_validate(loc) for loc in result.scalars().all()]


@router.post("", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
async def create_location(
    body: LocationCreate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    await _check_unique(db, ctx.company.id, body.name, body.code)
    if body.is_headquarters:
        await _clear_headquarters(db, ctx.company.id)

    actor = parse_uuid(ctx.user_id)
    location = Location(
        company_id=ctx.company.id,
        created_by=actor,
        updated_by=actor,
        **to_orm_fields(body.model_dump()),
    )
    db.add(location)
    await db.flush()
    await db.refresh(location)

    await create_audit_log(
        db,
        workspace_id=str(ctx.workspace.id),
        company_id=str(ctx.company.id),
        actor_id=ctx.user_id,
        action="CREATE",
        entity_type="LOCATION",
        entity_id=str(location.id),
        after_state=snapshot(location),
        actor_email=ctx.user.get("email"),
    )
    logger.info("location_created", location_id=str(location.id), company_id=str(ctx.company.id))
    return LocationResponse.model_validate(location)


@router.get("/{location_id}", response_model=LocationResponse)
async def get_location(
    location_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    return LocationResponse.model_validate(await _get_location(db, ctx, location_id))


@router.put("/{location_id}", response_model=LocationResponse)
async def update_location(
    location_id: str,
    body: LocationUpdate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    location = await _get_location(db, ctx, location_id)
    changes = to_orm_fields(body.model_dump(exclude_unset=True))
    await _check_unique(
        db, ctx.company.id, changes.get("name"), changes.get("code"), exclude_id=location.id
    )
    if changes.get("is_headquarters"):
        await _clear_headquarters(db, ctx.company.id, keep_id=location.id)

    before = snapshot(location)
    for field, val in changes.items():
        setattr(location, field, val)
    location.updated_by = parse_uuid(ctx.user_id)
    await db.flush()
    await db.refresh(location)

    await create_audit_log(
        db,
        workspace_id=str(ctx.workspace.id),
        company_id=str(ctx.company.id),
        actor_id=ctx.user_id,
        action="UPDATE",
        entity_type="LOCATION",
        entity_id=str(location.id),
        before_state=before,
        after_state=snapshot(location),
        actor_email=ctx.user.get("email"),
    )
    return LocationResponse.model_validate(location)


@router.delete("/{location_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_location(
    location_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    location = await _get_location(db, ctx, location_id)
    before = snapshot(location)
    location.deleted_at = datetime.utcnow()
    await db.flush()

    await create_audit_log(
        db,
        workspace_id=str(ctx.workspace.id),
        company_id=str(ctx.company.id),
        actor_id=ctx.user_id,
        action="DELETE",
        entity_type="LOCATION",
        entity_id=str(location.id),
        before_state=before,
        actor_email=ctx.user.get("email"),
    )
