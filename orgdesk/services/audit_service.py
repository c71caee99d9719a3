"""Audit logging service: records entity state changes per workspace."""

from typing import Iterable, Optional
from datetime import datetime
import uuid

from fastapi.encoders import jsonable_encoder
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from orgdesk.models.audit_log import AuditLog

logger = structlog.get_logger()

_SKIPPED_COLUMNS = {"password_hash"}


def _to_uuid(value: Optional[str], field_name: str, required: bool = False) -> Optional[uuid.UUID]:
    if value is None:
        if required:
            raise ValueError(f"{field_name} is required")
        return None
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError):
        if required:
            raise ValueError(f"{field_name} must be a valid UUID")
        logger.warning("audit_invalid_uuid", field=field_name, value=str(value))
        return None


def snapshot(entity, exclude: Iterable[str] = ()) -> dict:
    """JSON-safe dict of an ORM entity's column values."""
    skipped = _SKIPPED_COLUMNS | set(exclude)
    state = {}
    for attr in sa_inspect(entity).mapper.column_attrs:
        if attr.key in skipped:
            continue
        state[attr.key] = getattr(entity, attr.key)
    return jsonable_encoder(state)


def _compute_changed_fields(
    before: Optional[dict], after: Optional[dict]
) -> Optional[list[str]]:
    """Diff two state dicts and return list of changed field names."""
    if not before or not after:
        return None
    changed = []
    all_keys = set(before.keys()) | set(after.keys())
    for key in sorted(all_keys):
        if key == "updated_at":
            continue
        if before.get(key) != after.get(key):
            changed.append(key)
    return changed or None


async def create_audit_log(
    session: AsyncSession,
    workspace_id: str,
    actor_id: Optional[str],
    action: str,
    entity_type: str,
    entity_id: str,
    before_state: Optional[dict] = None,
    after_state: Optional[dict] = None,
    actor_email: Optional[str] = None,
    company_id: Optional[str] = None,
) -> AuditLog:
    """
    Create an audit log entry.

    Uses session.flush(); the caller owns the transaction.
    """
    changed_fields = _compute_changed_fields(before_state, after_state)

    audit = AuditLog(
        workspace_id=_to_uuid(workspace_id, "workspace_id", required=True),
        company_id=_to_uuid(company_id, "company_id"),
        actor_id=_to_uuid(actor_id, "actor_id"),
        actor_email=actor_email,
        action=action,
        entity_type=entity_type,
        entity_id=_to_uuid(entity_id, "entity_id", required=True),
        before_state=before_state,
        after_state=after_state,
        changed_fields=changed_fields,
        created_at=datetime.utcnow(),
    )
    session.add(audit)
    await session.flush()

    logger.info(
        "audit_log_created",
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        actor_id=actor_id,
    )
    return audit
