from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from orgdesk.database import get_db
from orgdesk.middleware.authorization import require_write_access
from orgdesk.middleware.tenant import CompanyContext, get_company_context
from orgdesk.models.customer import Customer, CustomerAddress, CustomerContact, CustomerNote
from orgdesk.schemas.common import PaginatedResponse, build_pagination, to_orm_fields
from orgdesk.schemas.contacts import (
    AddressCreate,
    AddressResponse,
    AddressUpdate,
    ContactCreate,
    ContactResponse,
    ContactUpdate,
)
from orgdesk.schemas.customer import (
    CustomerCreate,
    CustomerResponse,
    CustomerUpdate,
    NoteCreate,
    NoteResponse,
    NoteUpdate,
)
from orgdesk.services import contact_service
from orgdesk.services.audit_service import create_audit_log, snapshot
from orgdesk.services.tenancy_service import parse_uuid

logger = structlog.get_logger()
router = APIRouter()

OWNER = "customer_id"


async def _get_customer(db: AsyncSession, ctx: CompanyContext, customer_id: str) -> Customer:
    parsed = parse_uuid(customer_id)
    customer = None
    if parsed is not None:
        result = await db.execute(
            select(Customer).where(
                Customer.id == parsed,
                Customer.workspace_id == ctx.workspace.id,
                Customer.company_id == ctx.company.id,
                Customer.deleted_at.is_(None),
            )
        )
        customer = result.scalar_one_or_none()
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


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


@router.get("", response_model=PaginatedResponse[CustomerResponse])
async def list_customers(
    page: int = Query(1, ge=1, le=1000),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
    customer_status: Optional[str] = Query(None, alias="status"),
    customer_type: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    priority: Optional[str] = Query(None),
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    conditions = [
        Customer.workspace_id == ctx.workspace.id,
        Customer.company_id == ctx.company.id,
        Customer.deleted_at.is_(None),
    ]
    if customer_status:
        conditions.append(Customer.status == customer_status)
    if customer_type:
        conditions.append(Customer.customer_type == customer_type)
    if category:
        conditions.append(Customer.category == category)
    if priority:
        conditions.append(Customer.priority == priority)
    if search:
        pattern = f"%{search}%"
        conditions.append(
            or_(
                Customer.name.ilike(pattern),
                Customer.full_name.ilike(pattern),
                Customer.email.ilike(pattern),
                Customer.phone.ilike(pattern),
                Customer.tax_number.ilike(pattern),
            )
        )

    total = (await db.execute(select(func.count(Customer.id)).where(*conditions))).scalar() or 0
    result = await db.execute(
        select(Customer)
        .where(*conditions)
        .order_by(Customer.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    items = [CustomerResponse.model_validate(c) for c in result.scalars().all()]
    return PaginatedResponse(data=items, pagination=build_pagination(page, limit, total))


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    body: CustomerCreate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    actor = parse_uuid(ctx.user_id)
    customer = Customer(
        workspace_id=ctx.workspace.id,
        company_id=ctx.company.id,
        created_by=actor,
        updated_by=actor,
        **to_orm_fields(body.model_dump()),
    )
    db.add(customer)
    await db.flush()
    await db.refresh(customer)

    await _audit(db, ctx, "CREATE", "CUSTOMER", customer.id, after=snapshot(customer))
    logger.info("customer_created", customer_id=str(customer.id), company_id=str(ctx.company.id))
    return CustomerResponse.model_validate(customer)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    return CustomerResponse.model_validate(await _get_customer(db, ctx, customer_id))


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: str,
    body: CustomerUpdate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    customer = await _get_customer(db, ctx, customer_id)
    before = snapshot(customer)
    for field, val in to_orm_fields(body.model_dump(exclude_unset=True)).items():
        setattr(customer, field, val)
    customer.updated_by = parse_uuid(ctx.user_id)
    await db.flush()
    await db.refresh(customer)

    await _audit(db, ctx, "UPDATE", "CUSTOMER", customer.id, before=before, after=snapshot(customer))
    return CustomerResponse.model_validate(customer)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(
    customer_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    customer = await _get_customer(db, ctx, customer_id)
    before = snapshot(customer)
    customer.deleted_at = datetime.utcnow()
    customer.updated_by = parse_uuid(ctx.user_id)
    await db.flush()
    await _audit(db, ctx, "DELETE", "CUSTOMER", customer.id, before=before)


# ---------- addresses ----------

@router.get("/{customer_id}/addresses", response_model=List[AddressResponse])
async def list_addresses(
    customer_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    customer = await _get_customer(db, ctx, customer_id)
    rows = await contact_service.list_addresses(db, CustomerAddress, OWNER, customer.id)
    return [AddressResponse.model_validate(a) for a in rows]


@router.post(
    "/{customer_id}/addresses",
    response_model=AddressResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_address(
    customer_id: str,
    body: AddressCreate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    customer = await _get_customer(db, ctx, customer_id)
    address = await contact_service.add_address(db, CustomerAddress, OWNER, customer.id, body)
    return AddressResponse.model_validate(address)


@router.put("/{customer_id}/addresses/{address_id}", response_model=AddressResponse)
async def update_address(
    customer_id: str,
    address_id: str,
    body: AddressUpdate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    customer = await _get_customer(db, ctx, customer_id)
    address = await contact_service.get_child(
        db, CustomerAddress, OWNER, customer.id, address_id, "Address not found"
    )
    address = await contact_service.change_address(db, address, OWNER, body)
    return AddressResponse.model_validate(address)


@router.delete("/{customer_id}/addresses/{address_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_address(
    customer_id: str,
    address_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    customer = await _get_customer(db, ctx, customer_id)
    address = await contact_service.get_child(
        db, CustomerAddress, OWNER, customer.id, address_id, "Address not found"
    )
    await db.delete(address)
    await db.flush()


# ---------- contacts ----------

@router.get("/{customer_id}/contacts", response_model=List[ContactResponse])
async def list_contacts(
    customer_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    customer = await _get_customer(db, ctx, customer_id)
    rows = await contact_service.list_contacts(db, CustomerContact, OWNER, customer.id)
    return [ContactResponse.model_validate(c) for c in rows]


@router.post(
    "/{customer_id}/contacts",
    response_model=ContactResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_contact(
    customer_id: str,
    body: ContactCreate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    customer = await _get_customer(db, ctx, customer_id)
    contact = await contact_service.add_contact(db, CustomerContact, OWNER, customer.id, body)
    return ContactResponse.model_validate(contact)


@router.put("/{customer_id}/contacts/{contact_id}", response_model=ContactResponse)
async def update_contact(
    customer_id: str,
    contact_id: str,
    body: ContactUpdate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    customer = await _get_customer(db, ctx, customer_id)
    contact = await contact_service.get_child(
        db, CustomerContact, OWNER, customer.id, contact_id, "Contact not found"
    )
    contact = await contact_service.change_contact(db, contact, OWNER, body)
    return ContactResponse.model_validate(contact)


@router.delete("/{customer_id}/contacts/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contact(
    customer_id: str,
    contact_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    customer = await _get_customer(db, ctx, customer_id)
    contact = await contact_service.get_child(
        db, CustomerContact, OWNER, customer.id, contact_id, "Contact not found"
    )
    await db.delete(contact)
    await db.flush()


# ---------- notes ----------

async def _check_related_contact(db: AsyncSession, customer: Customer, contact_id):
    if contact_id is None:
        return
    result = await db.execute(
        select(CustomerContact.id).where(
            CustomerContact.id == contact_id, CustomerContact.customer_id == customer.id
        )
    )
    if result.first() is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Related contact does not belong to this customer",
        )


@router.get("/{customer_id}/notes", response_model=List[NoteResponse])
async def list_notes(
    customer_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    customer = await _get_customer(db, ctx, customer_id)
    result = await db.execute(
        select(CustomerNote)
        .where(CustomerNote.customer_id == customer.id)
        .order_by(CustomerNote.created_at.desc())
    )
    return [NoteResponse.model_validate(n) for n in result.scalars().all()]


@router.post(
    "/{customer_id}/notes",
    response_model=NoteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_note(
    customer_id: str,
    body: NoteCreate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    customer = await _get_customer(db, ctx, customer_id)
    await _check_related_contact(db, customer, body.related_contact_id)
    note = CustomerNote(
        customer_id=customer.id, created_by=parse_uuid(ctx.user_id), **body.model_dump()
    )
    db.add(note)
    await db.flush()
    await db.refresh(note)
    return NoteResponse.model_validate(note)


@router.put("/{customer_id}/notes/{note_id}", response_model=NoteResponse)
async def update_note(
    customer_id: str,
    note_id: str,
    body: NoteUpdate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    customer = await _get_customer(db, ctx, customer_id)
    note = await contact_service.get_child(
        db, CustomerNote, OWNER, customer.id, note_id, "Note not found"
    )
    changes = body.model_dump(exclude_unset=True)
    if "related_contact_id" in changes:
        await _check_related_contact(db, customer, changes["related_contact_id"])
    for field, val in changes.items():
        setattr(note, field, val)
    await db.flush()
    await db.refresh(note)
    return NoteResponse.model_validate(note)


@router.delete("/{customer_id}/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    customer_id: str,
    note_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    customer = await _get_customer(db, ctx, customer_id)
    note = await contact_service.get_child(
        db, CustomerNote, OWNER, customer.id, note_id, "Note not found"
    )
    await db.delete(note)
    await db.flush()
