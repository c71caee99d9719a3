from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from orgdesk.config import settings
from orgdesk.database import get_db
from orgdesk.middleware.authorization import require_write_access
from orgdesk.middleware.tenant import CompanyContext, get_company_context
from orgdesk.models.file import FileAttachment, FileTemplate, FileVersion
from orgdesk.schemas.file import (
    AttachmentCreate,
    AttachmentResponse,
    FileTemplateCreate,
    FileTemplateResponse,
    FileTemplateUpdate,
    FileVersionCreate,
    FileVersionResponse,
    UploadUrlRequest,
    UploadUrlResponse,
)
from orgdesk.services import file_service
from orgdesk.services.audit_service import create_audit_log, snapshot
from orgdesk.services.storage import build_company_blob_path, storage
from orgdesk.services.tenancy_service import parse_uuid

logger = structlog.get_logger()
router = APIRouter()


def _version_response(version: FileVersion, attachments=()) -> FileVersionResponse:
    response = FileVersionResponse.model_validate(version)
    response.attachments = [AttachmentResponse.model_validate(a) for a in attachments]
    return response


async def _template_response(
    db: AsyncSession, template: FileTemplate, with_versions: bool = True
) -> FileTemplateResponse:
    versions = await file_service.list_versions(db, template.id)
    attachments = await file_service.list_attachments(db, [v.id for v in versions])
    response = FileTemplateResponse.model_validate(template)
    current = file_service.current_version(versions)
    if current is not None:
        response.current_version = _version_response(current, attachments.get(current.id, []))
    if with_versions:
        response.versions = [_version_response(v, attachments.get(v.id, [])) for v in versions]
    return response


async def _audit(db: AsyncSession, ctx: CompanyContext, action: str, template_id, before=None, after=None):
    await create_audit_log(
        db,
        workspace_id=str(ctx.workspace.id),
        company_id=str(ctx.company.id),
        actor_id=ctx.user_id,
        action=action,
        entity_type="FILE",
        entity_id=str(template_id),
        before_state=before,
        after_state=after,
        actor_email=ctx.user.get("email"),
    )


@router.post("/upload-url", response_model=UploadUrlResponse)
async def create_upload_url(
    body: UploadUrlRequest,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
):
    """Presigned PUT URL the client uploads the file body to."""
    if not body.filename or not body.filename.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="filename is required")

    blob_path = build_company_blob_path(str(ctx.company.id), body.filename)
    expires_in = settings.UPLOAD_URL_EXPIRY_SECONDS
    try:
        upload_url = storage.get_presigned_upload_url(
            blob_path, content_type=body.content_type, expires_in=expires_in
        )
    except Exception as e:
        logger.error("upload_url_failed", blob_path=blob_path, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to create upload URL",
        )

    logger.info("upload_url_created", company_id=str(ctx.company.id), blob_path=blob_path)
    return UploadUrlResponse(
        upload_url=upload_url,
        blob_path=blob_path,
        blob_url=storage.public_url(blob_path),
        expires_in=expires_in,
    )


@router.get("/download-url")
async def get_download_url(
    blob_path: str = Query(..., min_length=1),
    ctx: CompanyContext = Depends(get_company_context),
):
    """Presigned download URL for a blob stored under this company."""
    if not blob_path.startswith(f"companies/{ctx.company.id}/"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    try:
        url = storage.get_presigned_url(blob_path)
    except Exception as e:
        logger.error("presigned_url_failed", blob_path=blob_path, error=str(e))
        raise HTTPException(status_code=404, detail="File not found")
    return {"blob_path": blob_path, "download_url": url}


@router.get("", response_model=List[FileTemplateResponse])
async def list_files(
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    q = select(FileTemplate).where(
        FileTemplate.company_id == ctx.company.id, FileTemplate.deleted_at.is_(None)
    )
    if category:
        q = q.where(FileTemplate.category == category)
    if search:
        pattern = f"%{search}%"
        q = q.where(or_(FileTemplate.name.ilike(pattern), FileTemplate.description.ilike(pattern)))
    result = await db.execute(q.order_by(FileTemplate.updated_at.desc()))
    return [
        await _template_response(db, template, with_versions=False)
        for template in result.scalars().all()
    ]


@router.post("", response_model=FileTemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_file(
    body: FileTemplateCreate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    actor = parse_uuid(ctx.user_id)
    template = FileTemplate(
        company_id=ctx.company.id,
        created_by=actor,
        **body.model_dump(exclude={"initial_version"}),
    )
    db.add(template)
    await db.flush()

    initial = body.initial_version.model_dump()
    initial["version"] = initial.get("version") or file_service.FIRST_VERSION
    db.add(FileVersion(template_id=template.id, is_current=True, created_by=actor, **initial))
    await db.flush()
    await db.refresh(template)

    await _audit(db, ctx, "CREATE", template.id, after=snapshot(template))
    logger.info("file_created", template_id=str(template.id), company_id=str(ctx.company.id))
    return await _template_response(db, template)


@router.delete("/attachments/{attachment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attachment(
    attachment_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    parsed = parse_uuid(attachment_id)
    attachment = None
    if parsed is not None:
        result = await db.execute(
            select(FileAttachment, FileVersion.template_id)
            .join(FileVersion, FileVersion.id == FileAttachment.version_id)
            .join(FileTemplate, FileTemplate.id == FileVersion.template_id)
            .where(FileAttachment.id == parsed, FileTemplate.company_id == ctx.company.id)
        )
        row = result.first()
    if row is None:
        raise HTTPException(status_code=404, detail="Attachment not found")

    attachment, template_id = row
    blob_path = attachment.blob_path
    before = {"attachment_id": str(attachment.id), "name": attachment.name, "blob_path": blob_path}
    await db.delete(attachment)
    await db.flush()
    await _audit(db, ctx, "UPDATE", template_id, before=before)

    # storage is only touched once the row removal is durable
    await db.commit()
    file_service.delete_blobs([blob_path])


@router.get("/{file_id}", response_model=FileTemplateResponse)
async def get_file(
    file_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    template = await file_service.get_template(db, ctx.company.id, file_id)
    return await _template_response(db, template)


@router.put("/{file_id}", response_model=FileTemplateResponse)
async def update_file(
    file_id: str,
    body: FileTemplateUpdate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    template = await file_service.get_template(db, ctx.company.id, file_id)
    before = snapshot(template)
    for field, val in body.model_dump(exclude_unset=True).items():
        setattr(template, field, val)
    await db.flush()
    await db.refresh(template)

    await _audit(db, ctx, "UPDATE", template.id, before=before, after=snapshot(template))
    return await _template_response(db, template)


@router.delete("/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_file(
    file_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    template = await file_service.get_template(db, ctx.company.id, file_id)
    versions = await file_service.list_versions(db, template.id)
    attachments = await file_service.list_attachments(db, [v.id for v in versions])
    blob_paths = [v.blob_path for v in versions]
    blob_paths += [a.blob_path for group in attachments.values() for a in group]

    before = snapshot(template)
    template.deleted_at = datetime.utcnow()
    await db.flush()
    await _audit(db, ctx, "DELETE", template.id, before=before)

    await db.commit()
    deleted = file_service.delete_blobs(blob_paths)
    logger.info("file_deleted", template_id=str(template.id), blobs_deleted=deleted)


@router.post(
    "/{file_id}/versions",
    response_model=FileVersionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_version(
    file_id: str,
    body: FileVersionCreate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    template = await file_service.get_template(db, ctx.company.id, file_id)
    versions = await file_service.list_versions(db, template.id)

    data = body.model_dump()
    data["version"] = data.get("version") or file_service.next_version_label(
        v.version for v in versions
    )
    await file_service.clear_current(db, template.id)
    version = FileVersion(
        template_id=template.id,
        is_current=True,
        created_by=parse_uuid(ctx.user_id),
        **data,
    )
    db.add(version)
    template.updated_at = datetime.utcnow()
    await db.flush()
    await db.refresh(version)

    await _audit(db, ctx, "UPDATE", template.id, after={"version": version.version})
    logger.info("file_version_added", template_id=str(template.id), version=version.version)
    return _version_response(version)


@router.post("/{file_id}/versions/{version_id}/make-current", response_model=FileVersionResponse)
async def make_version_current(
    file_id: str,
    version_id: str,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    template = await file_service.get_template(db, ctx.company.id, file_id)
    version = await file_service.make_current(db, template, version_id)
    return _version_response(version)


@router.post(
    "/{file_id}/attachments",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_attachment(
    file_id: str,
    body: AttachmentCreate,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_write_access()),
    db: AsyncSession = Depends(get_db),
):
    template, addressed = await file_service.resolve_template_or_version(db, ctx.company.id, file_id)
    versions = await file_service.list_versions(db, template.id)
    target = file_service.pick_attachment_version(
        versions,
        version_id=body.version_id,
        version_label=body.version,
        addressed_version=addressed,
    )
    if target is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No version found to attach to",
        )

    attachment = FileAttachment(
        version_id=target.id,
        created_by=parse_uuid(ctx.user_id),
        **body.model_dump(exclude={"version_id", "version"}),
    )
    db.add(attachment)
    await db.flush()
    await db.refresh(attachment)

    await _audit(
        db,
        ctx,
        "UPDATE",
        template.id,
        after={
            "attachment_id": str(attachment.id),
            "name": attachment.name,
            "version": target.version,
        },
    )
    logger.info(
        "file_attachment_added",
        template_id=str(template.id),
        version_id=str(target.id),
        attachment_id=str(attachment.id),
    )
    return AttachmentResponse.model_validate(attachment)
