from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from orgdesk.database import get_db
from orgdesk.middleware.authorization import require_write_access
from orgdesk.middleware.tenant import CompanyContext, get_company_context
from orgdesk.models.supplier import Supplier, SupplierAddress, SupplierContact
from orgdesk.schemas.common import PaginatedResponse, build_pagination, to_orm_fields
from orgdesk.schemas.contacts import (
    AddressCreate,
    AddressResponse,
    AddressUpdate,
    ContactCreate,
    ContactResponse,
    ContactUpdate,
)
from orgdesk.schemas.supplier import SupplierCreate, SupplierResponse, SupplierUpdate
from orgdesk.services import contact_service
from orgdesk.services.audit_service import create_audit_log, snapshot
from orgdesk.services.supplier_service import ensure_supplier_code_available
from orgdesk.services.tenancy_service import parse_uuid

logger = structlog.get_logger()
router = APIRouter()

OWNER = "supplier_id"


async def _get_supplier(db: AsyncSession, ctx: CompanyContext, supplier_id: str) -> Supplier:
    parsed = parse_uuid(supplier_id)
    supplier = None
    if parsed is not None:
        result = await db.execute(
            select(Supplier).where(
                Supplier.id == parsed,
                Supplier.workspace_id == ctx.workspace.id,
                Supplier.company_id == ctx.company.id,
                Supplier.deleted_at.is_(None),
            )
        )
        supplier = result.scalar_one_or_none()
    if not supplier:
        raise HTTPException(status_code=404, detail="Supplier not found")
    return supplier


async def _audit(db: AsyncSession, ctx: CompanyContext, action: str, supplier_id, before=None, after=None):
    await create_audit_log(
        db,
        workspace_id=str(ctx.workspace.id),
        company_id=str(ctx.company.id),
        actor_id=ctx.user_id,
        action=action,
        entity_type="SUPPLIER",
        entity_id=str(supplier_id),
        before_state=before,
        after_state=after,
        actor_email=ctx.user.get("email"),
    )


@router.get("", response_model=PaginatedResponse[SupplierResponse])
async def list_suppliers(
    page: int = Query(1, ge=1, le=1000),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
    supplier_status: Optional[str] = Query(None, alias="status"),
    supplier_type: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    conditions = [
        Supplier.workspace_id == ctx.workspace.id,
        Supplier.company_id == ctx.company.id,
        Supplier.deleted_at.is_(None),
    ]
    if supplier_status:
        conditions.append(Supplier.status == supplier_status)
    if supplier_type:
        conditions.append(Supplier.supplier_type == supplier_type)
    if category:
        conditions.append(Supplier.category == category)
    if search:
        pattern = f"%{search}%"
        conditions.append(
            or_(
                Supplier.name.ilike(pattern),
                Supplier.email.ilike(pattern),
                Supplier.phone.ilike(pattern),
                Supplier.supplier_code.ilike(pattern),
            )
        )

    total = (await db.execute(select(func.count(Supplier.id)).where(*conditions))).scalar() or 0
    result = await db.execute(
        select(Supplier)
        .where(*conditions)
        .order_by(Supplier.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    items = [SupplierResponse.model_validate(s) for s in result.scalars().all()]
    return PaginatedResponse(data=items, pagination=build_pagination(page, limit, total))


@router.post("", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
async def create_supplier(
    body: SupplierCreate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    await ensure_supplier_code_available(db, ctx.workspace.id, ctx.company.id, body.supplier_code)

    actor = parse_uuid(ctx.user_id)
    supplier = Supplier(
        workspace_id=ctx.workspace.id,
        company_id=ctx.company.id,
        created_by=actor,
        updated_by=actor,
        **to_orm_fields(body.model_dump()),
    )
    db.add(supplier)
    await db.flush()
    await db.refresh(supplier)

    await _audit(db, ctx, "CREATE", supplier.id, after=snapshot(supplier))
    logger.info("supplier_created", supplier_id=str(supplier.id), company_id=str(ctx.company.id))
    return SupplierResponse.model_validate(supplier)


@router.get("/{supplier_id}", response_model=SupplierResponse)
async def get_supplier(
    supplier_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    return SupplierResponse.model_validate(await _get_supplier(db, ctx, supplier_id))


@router.put("/{supplier_id}", response_model=SupplierResponse)
async def update_supplier(
    supplier_id: str,
    body: SupplierUpdate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    supplier = await _get_supplier(db, ctx, supplier_id)
    changes = to_orm_fields(body.model_dump(exclude_unset=True))
    if changes.get("supplier_code") and changes["supplier_code"] != supplier.supplier_code:
        await ensure_supplier_code_available(
            db, ctx.workspace.id, ctx.company.id, changes["supplier_code"], exclude_id=supplier.id
        )

    before = snapshot(supplier)
    for field, val in changes.items():
        setattr(supplier, field, val)
    supplier.updated_by = parse_uuid(ctx.user_id)
    await db.flush()
    await db.refresh(supplier)

    await _audit(db, ctx, "UPDATE", supplier.id, before=before, after=snapshot(supplier))
    return SupplierResponse.model_validate(supplier)


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_supplier(
    supplier_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    supplier = await _get_supplier(db, ctx, supplier_id)
    before = snapshot(supplier)
    supplier.deleted_at = datetime.utcnow()
    supplier.updated_by = parse_uuid(ctx.user_id)
    await db.flush()
    await _audit(db, ctx, "DELETE", supplier.id, before=before)


# ---------- addresses ----------

@router.get("/{supplier_id}/addresses", response_model=List[AddressResponse])
async def list_addresses(
    supplier_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    supplier = await _get_supplier(db, ctx, supplier_id)
    rows = await contact_service.list_addresses(db, SupplierAddress, OWNER, supplier.id)
    return [AddressResponse.model_validate(a) for a in rows]


@router.post(
    "/{supplier_id}/addresses",
    response_model=AddressResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_address(
    supplier_id: str,
    body: AddressCreate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    supplier = await _get_supplier(db, ctx, supplier_id)
    address = await contact_service.add_address(db, SupplierAddress, OWNER, supplier.id, body)
    return AddressResponse.model_validate(address)


@router.put("/{supplier_id}/addresses/{address_id}", response_model=AddressResponse)
async def update_address(
    supplier_id: str,
    address_id: str,
    body: AddressUpdate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    supplier = await _get_supplier(db, ctx, supplier_id)
    address = await contact_service.get_child(
        db, SupplierAddress, OWNER, supplier.id, address_id, "Address not found"
    )
    address = await contact_service.change_address(db, address, OWNER, body)
    return AddressResponse.model_validate(address)


@router.delete("/{supplier_id}/addresses/{address_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_address(
    supplier_id: str,
    address_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    supplier = await _get_supplier(db, ctx, supplier_id)
    address = await contact_service.get_child(
        db, SupplierAddress, OWNER, supplier.id, address_id, "Address not found"
    )
    await db.delete(address)
    await db.flush()


# ---------- contacts ----------

@router.get("/{supplier_id}/contacts", response_model=List[ContactResponse])
async def list_contacts(
    supplier_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    supplier = await _get_supplier(db, ctx, supplier_id)
    rows = await contact_service.list_contacts(db, SupplierContact, OWNER, supplier.id)
    return [ContactResponse.model_validate(c) for c in rows]


@router.post(
    "/{supplier_id}/contacts",
    response_model=ContactResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_contact(
    supplier_id: str,
    body: ContactCreate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    supplier = await _get_supplier(db, ctx, supplier_id)
    contact = await contact_service.add_contact(db, SupplierContact, OWNER, supplier.id, body)
    return ContactResponse.model_validate(contact)


@router.put("/{supplier_id}/contacts/{contact_id}", response_model=ContactResponse)
async def update_contact(
    supplier_id: str,
    contact_id: str,
    body: ContactUpdate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    supplier = await _get_supplier(db, ctx, supplier_id)
    contact = await contact_service.get_child(
        db, SupplierContact, OWNER, supplier.id, contact_id, "Contact not found"
    )
    contact = await contact_service.change_contact(db, contact, OWNER, body)
    return ContactResponse.model_validate(contact)


@router.delete("/{supplier_id}/contacts/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contact(
    supplier_id: str,
    contact_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    supplier = await _get_supplier(db, ctx, supplier_id)
    contact = await contact_service.get_child(
        db, SupplierContact, OWNER, supplier.id, contact_id, "Contact not found"
    )
    await db.delete(contact)
    await db.flush()
