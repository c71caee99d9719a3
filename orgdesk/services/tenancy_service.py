"""Workspace and company resolution by id or slug."""

import re
import uuid
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from orgdesk.models.company import Company
from orgdesk.models.workspace import Workspace, WorkspaceCompany, WorkspaceMember

_TRANSLITERATION = str.maketrans({
    "ç": "c", "Ç": "c",
    "ğ": "g", "Ğ": "g",
    "ı": "i", "İ": "i",
    "ö": "o", "Ö": "o",
    "ş": "s", "Ş": "s",
    "ü": "u", "Ü": "u",
})
_NON_SLUG = re.compile(r"[^a-z0-9]")


def slugify_company_first_word(name: Optional[str]) -> str:
    """'Şeker Gıda A.Ş.' -> 'seker'."""
    if not name:
        return ""
    parts = name.strip().split()
    if not parts:
        return ""
    first = parts[0].translate(_TRANSLITERATION).lower()
    return _NON_SLUG.sub("", first)


def parse_uuid(value) -> Optional[uuid.UUID]:
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        return None


async def resolve_workspace(db: AsyncSession, id_or_slug: str) -> Workspace:
    ws_uuid = parse_uuid(id_or_slug)
    conditions = [Workspace.slug == id_or_slug]
    if ws_uuid is not None:
        conditions.append(Workspace.id == ws_uuid)
    result = await db.execute(select(Workspace).where(or_(*conditions)))
    workspace = result.scalars().first()
    if not workspace:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Workspace not found")
    return workspace


async def get_member_role(
    db: AsyncSession, workspace: Workspace, user_id: str
) -> Optional[str]:
    """The user's role in the workspace; the owner is always 'owner'."""
    if str(workspace.owner_id) == str(user_id):
        return "owner"
    result = await db.execute(
        select(WorkspaceMember.role).where(
            WorkspaceMember.workspace_id == workspace.id,
            WorkspaceMember.user_id == parse_uuid(user_id),
        )
    )
    return result.scalar_one_or_none()


def _workspace_companies(workspace_id: uuid.UUID):
    return (
        select(Company)
        .join(WorkspaceCompany, WorkspaceCompany.company_id == Company.id)
        .where(
            WorkspaceCompany.workspace_id == workspace_id,
            Company.deleted_at.is_(None),
        )
    )


async def resolve_company(
    db: AsyncSession, workspace_id: uuid.UUID, id_or_slug: str
) -> Company:
    company_uuid = parse_uuid(id_or_slug)
    if company_uuid is not None:
        result = await db.execute(
            _workspace_companies(workspace_id).where(Company.id == company_uuid)
        )
        company = result.scalar_one_or_none()
        if company:
            return company

    wanted = (id_or_slug or "").lower()
    result = await db.execute(
        _workspace_companies(workspace_id).order_by(Company.created_at)
    )
    for company in result.scalars().all():
        if slugify_company_first_word(company.name) == wanted:
            return company

    raise HTTPException(status.HTTP_404_NOT_FOUND, "Company not found in this workspace")
