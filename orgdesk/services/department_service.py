import uuid
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from orgdesk.models.department import Department, Unit


def creates_cycle(
    parents: dict[uuid.UUID, Optional[uuid.UUID]],
    department_id: uuid.UUID,
    new_parent_id: uuid.UUID,
) -> bool:
    """True if new_parent_id is the department itself or one of its descendants."""
    seen = set()
    current = new_parent_id
    while current is not None and current not in seen:
        if current == department_id:
            return True
        seen.add(current)
        current = parents.get(current)
    return False


async def check_unique(
    db: AsyncSession,
    company_id: uuid.UUID,
    name: Optional[str],
    code: Optional[str],
    exclude_id: Optional[uuid.UUID] = None,
):
    for column, value, message in (
        (Department.name, name, "Department name already exists"),
        (Department.code, code, "Department code already exists"),
    ):
        if not value:
            continue
        q = select(Department.id).where(
            Department.company_id == company_id,
            column == value,
            Department.deleted_at.is_(None),
        )
        if exclude_id is not None:
            q = q.where(Department.id != exclude_id)
        if (await db.execute(q)).first() is not None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


async def check_parent(
    db: AsyncSession,
    company_id: uuid.UUID,
    parent_id: uuid.UUID,
    department_id: Optional[uuid.UUID] = None,
):
    result = await db.execute(
        select(Department.id, Department.parent_department_id).where(
            Department.company_id == company_id, Department.deleted_at.is_(None)
        )
    )
    parents = {row[0]: row[1] for row in result.all()}
    if parent_id not in parents:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Parent department must belong to the same company",
        )
    if department_id is not None and creates_cycle(parents, department_id, parent_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A department cannot be placed under itself or one of its sub-departments",
        )


async def unit_counts(db: AsyncSession, department_ids: list[uuid.UUID]) -> dict[uuid.UUID, int]:
    if not department_ids:
        return {}
    result = await db.execute(
        select(Unit.department_id, func.count(Unit.id))
        .where(Unit.department_id.in_(department_ids), Unit.deleted_at.is_(None))
        .group_by(Unit.department_id)
    )
    return {dept_id: count for dept_id, count in result.all()}


async def check_unit_name(
    db: AsyncSession,
    department_id: uuid.UUID,
    name: str,
    exclude_id: Optional[uuid.UUID] = None,
):
    q = select(Unit.id).where(
        Unit.department_id == department_id,
        Unit.name == name,
        Unit.deleted_at.is_(None),
    )
    if exclude_id is not None:
        q = q.where(Unit.id != exclude_id)
    if (await db.execute(q)).first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Unit name already exists in this department",
        )
