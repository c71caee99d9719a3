import uuid
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from orgdesk.models.supplier import Supplier

logger = structlog.get_logger()


async def ensure_supplier_code_available(
    db: AsyncSession,
    workspace_id: uuid.UUID,
    company_id: uuid.UUID,
    supplier_code: Optional[str],
    exclude_id: Optional[uuid.UUID] = None,
):
    """Supplier codes are unique per workspace and company among live suppliers."""
    if not supplier_code:
        return
    q = select(Supplier.id).where(
        Supplier.workspace_id == workspace_id,
        Supplier.company_id == company_id,
        Supplier.supplier_code == supplier_code,
        Supplier.deleted_at.is_(None),
    )
    if exclude_id is not None:
        q = q.where(Supplier.id != exclude_id)
    result = await db.execute(q)
    if result.first() is not None:
        logger.info(
            "supplier_code_conflict",
            company_id=str(company_id),
            supplier_code=supplier_code,
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Supplier code already exists",
        )
