"""Address and contact bookkeeping shared by customers and suppliers."""

import uuid
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from orgdesk.services.tenancy_service import parse_uuid


async def clear_default_addresses(
    db: AsyncSession,
    model,
    owner_column: str,
    owner_id: uuid.UUID,
    address_type: str,
    keep_id: Optional[uuid.UUID] = None,
):
    """Only one default address per owner and address type."""
    stmt = update(model).where(
        getattr(model, owner_column) == owner_id,
        model.address_type == address_type,
        model.is_default.is_(True),
    )
    if keep_id is not None:
        stmt = stmt.where(model.id != keep_id)
    await db.execute(stmt.values(is_default=False))


async def clear_primary_contacts(
    db: AsyncSession,
    model,
    owner_column: str,
    owner_id: uuid.UUID,
    keep_id: Optional[uuid.UUID] = None,
):
    """Only one primary contact per owner."""
    stmt = update(model).where(
        getattr(model, owner_column) == owner_id,
        model.is_primary.is_(True),
    )
    if keep_id is not None:
        stmt = stmt.where(model.id != keep_id)
    await db.execute(stmt.values(is_primary=False))


async def get_child(
    db: AsyncSession,
    model,
    owner_column: str,
    owner_id: uuid.UUID,
    child_id: str,
    not_found: str,
):
    parsed = parse_uuid(child_id)
    child = None
    if parsed is not None:
        result = await db.execute(
            select(model).where(model.id == parsed, getattr(model, owner_column) == owner_id)
        )
        child = result.scalar_one_or_none()
    if child is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=not_found)
    return child


async def list_addresses(db: AsyncSession, model, owner_column: str, owner_id: uuid.UUID):
    result = await db.execute(
        select(model)
        .where(getattr(model, owner_column) == owner_id)
        .order_by(model.is_default.desc(), model.created_at)
    )
    return result.scalars().all()


async def list_contacts(db: AsyncSession, model, owner_column: str, owner_id: uuid.UUID):
    result = await db.execute(
        select(model)
        .where(getattr(model, owner_column) == owner_id)
        .order_by(model.is_primary.desc(), model.last_name, model.first_name)
    )
    return result.scalars().all()


async def add_address(db: AsyncSession, model, owner_column: str, owner_id: uuid.UUID, body):
    if body.is_default:
        await clear_default_addresses(db, model, owner_column, owner_id, body.address_type)
    address = model(**{owner_column: owner_id}, **body.model_dump())
    db.add(address)
    await db.flush()
    await db.refresh(address)
    return address


async def change_address(db: AsyncSession, address, owner_column: str, body):
    changes = body.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(address, field, value)
    if address.is_default and ("is_default" in changes or "address_type" in changes):
        await clear_default_addresses(
            db,
            type(address),
            owner_column,
            getattr(address, owner_column),
            address.address_type,
            keep_id=address.id,
        )
    await db.flush()
    await db.refresh(address)
    return address


async def add_contact(db: AsyncSession, model, owner_column: str, owner_id: uuid.UUID, body):
    if body.is_primary:
        await clear_primary_contacts(db, model, owner_column, owner_id)
    contact = model(**{owner_column: owner_id}, **body.model_dump())
    db.add(contact)
    await db.flush()
    await db.refresh(contact)
    return contact


async def change_contact(db: AsyncSession, contact, owner_column: str, body):
    changes = body.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(contact, field, value)
    if changes.get("is_primary"):
        await clear_primary_contacts(
            db,
            type(contact),
            owner_column,
            getattr(contact, owner_column),
            keep_id=contact.id,
        )
    await db.flush()
    await db.refresh(contact)
    return contact
