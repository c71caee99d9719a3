"""Managed company files: templates, their versions and attachments."""

import uuid
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from orgdesk.models.file import FileAttachment, FileTemplate, FileVersion
from orgdesk.services.storage import storage
from orgdesk.services.tenancy_service import parse_uuid

logger = structlog.get_logger()

FIRST_VERSION = "1.0"
VERSION_STEP = Decimal("0.1")


def next_version_label(labels: Iterable[str]) -> str:
    """Highest numeric major.minor label plus 0.1; non-numeric labels are ignored."""
    highest = None
    for label in labels:
        try:
            value = Decimal(str(label).strip())
        except InvalidOperation:
            continue
        if not value.is_finite():
            continue
        if highest is None or value > highest:
            highest = value
    if highest is None:
        return FIRST_VERSION
    return str((highest + VERSION_STEP).quantize(VERSION_STEP))


def latest_version(versions: list[FileVersion]) -> Optional[FileVersion]:
    if not versions:
        return None
    return max(versions, key=lambda v: v.created_at)


def current_version(versions: list[FileVersion]) -> Optional[FileVersion]:
    for version in versions:
        if version.is_current:
            return version
    return None


def pick_attachment_version(
    versions: list[FileVersion],
    version_id: Optional[uuid.UUID] = None,
    version_label: Optional[str] = None,
    addressed_version: Optional[FileVersion] = None,
) -> Optional[FileVersion]:
    """
    Target for a new attachment, in order: explicit version_id, matching label,
    the version the request addressed, the current version, the latest one.
    """
    if version_id is not None:
        for version in versions:
            if version.id == version_id:
                return version
        return None
    if version_label:
        for version in versions:
            if version.version == version_label:
                return version
    if addressed_version is not None:
        return addressed_version
    return current_version(versions) or latest_version(versions)


async def get_template(
    db: AsyncSession, company_id: uuid.UUID, template_id: str
) -> FileTemplate:
    parsed = parse_uuid(template_id)
    template = None
    if parsed is not None:
        result = await db.execute(
            select(FileTemplate).where(
                FileTemplate.id == parsed,
                FileTemplate.company_id == company_id,
                FileTemplate.deleted_at.is_(None),
            )
        )
        template = result.scalar_one_or_none()
    if template is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return template


async def resolve_template_or_version(
    db: AsyncSession, company_id: uuid.UUID, file_id: str
) -> tuple[FileTemplate, Optional[FileVersion]]:
    """Accept a template id or one of its version ids."""
    parsed = parse_uuid(file_id)
    if parsed is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    result = await db.execute(
        select(FileTemplate).where(
            FileTemplate.id == parsed,
            FileTemplate.company_id == company_id,
            FileTemplate.deleted_at.is_(None),
        )
    )
    template = result.scalar_one_or_none()
    if template is not None:
        return template, None

    result = await db.execute(
        select(FileVersion, FileTemplate)
        .join(FileTemplate, FileTemplate.id == FileVersion.template_id)
        .where(
            FileVersion.id == parsed,
            FileTemplate.company_id == company_id,
            FileTemplate.deleted_at.is_(None),
        )
    )
    row = result.first()
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    version, template = row
    return template, version


async def list_versions(db: AsyncSession, template_id: uuid.UUID) -> list[FileVersion]:
    result = await db.execute(
        select(FileVersion)
        .where(FileVersion.template_id == template_id)
        .order_by(FileVersion.created_at.desc())
    )
    return list(result.scalars().all())


async def list_attachments(
    db: AsyncSession, version_ids: list[uuid.UUID]
) -> dict[uuid.UUID, list[FileAttachment]]:
    grouped: dict[uuid.UUID, list[FileAttachment]] = {vid: [] for vid in version_ids}
    if not version_ids:
        return grouped
    result = await db.execute(
        select(FileAttachment)
        .where(FileAttachment.version_id.in_(version_ids))
        .order_by(FileAttachment.created_at)
    )
    for attachment in result.scalars().all():
        grouped.setdefault(attachment.version_id, []).append(attachment)
    return grouped


async def clear_current(db: AsyncSession, template_id: uuid.UUID):
    await db.execute(
        update(FileVersion)
        .where(FileVersion.template_id == template_id, FileVersion.is_current.is_(True))
        .values(is_current=False)
    )


async def make_current(
    db: AsyncSession, template: FileTemplate, version_id: str
) -> FileVersion:
    parsed = parse_uuid(version_id)
    version = None
    if parsed is not None:
        result = await db.execute(
            select(FileVersion).where(
                FileVersion.id == parsed, FileVersion.template_id == template.id
            )
        )
        version = result.scalar_one_or_none()
    if version is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Version not found for this file",
        )
    await clear_current(db, template.id)
    version.is_current = True
    await db.flush()
    logger.info(
        "file_version_made_current",
        template_id=str(template.id),
        version_id=str(version.id),
        version=version.version,
    )
    return version


def delete_blobs(paths: Iterable[Optional[str]]) -> int:
    """Remove blobs from storage; failures are logged and skipped."""
    deleted = 0
    for path in paths:
        if not path:
            continue
        try:
            storage.delete(path)
            deleted += 1
        except Exception as exc:
            logger.warning("file_blob_delete_failed", blob_path=path, error=str(exc))
    return deleted
