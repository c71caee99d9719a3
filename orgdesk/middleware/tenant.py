from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from orgdesk.database import get_db
from orgdesk.middleware.auth import get_current_user
from orgdesk.models.company import Company
from orgdesk.models.workspace import Workspace
from orgdesk.services.tenancy_service import (
    get_member_role,
    resolve_company,
    resolve_workspace,
)

logger = structlog.get_logger()


@dataclass
class WorkspaceContext:
    workspace: Workspace
    role: str
    user: dict

    @property
    def user_id(self) -> str:
        return self.user["user_id"]

    @property
    def is_admin(self) -> bool:
        return self.role in ("owner", "admin")


@dataclass
class CompanyContext(WorkspaceContext):
    company: Company = None


async def get_workspace_context(
    workspace_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> WorkspaceContext:
    """Resolve {workspace_id} (id or slug) and check the caller belongs to it."""
    workspace = await resolve_workspace(db, workspace_id)
    role = await get_member_role(db, workspace, current_user["user_id"])
    # superusers get no implicit membership; their reach is /api/system only
    if role is None:
        logger.warning(
            "workspace_access_denied",
            workspace_id=str(workspace.id),
            user_id=current_user["user_id"],
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this workspace",
        )
    return WorkspaceContext(workspace=workspace, role=role, user=current_user)


async def get_company_context(
    company_id: str,
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: AsyncSession = Depends(get_db),
) -> CompanyContext:
    """Resolve {company_id} (id or first-word slug) inside the workspace."""
    company = await resolve_company(db, ctx.workspace.id, company_id)
    return CompanyContext(
        workspace=ctx.workspace, role=ctx.role, user=ctx.user, company=company
    )
