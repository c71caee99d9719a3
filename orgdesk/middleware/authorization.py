from fastapi import Depends, HTTPException, status

from orgdesk.middleware.auth import get_current_user
from orgdesk.middleware.tenant import WorkspaceContext, get_workspace_context

ROLE_HIERARCHY = {
    "owner": 100,
    "admin": 80,
    "member": 40,
    "viewer": 10,
}


def require_workspace_roles(*allowed_roles: str):
    """
    FastAPI dependency factory for workspace role checks.

    Usage:
        @router.post("")
        async def create_company(
            ctx: WorkspaceContext = Depends(get_workspace_context),
            _auth: None = Depends(require_workspace_roles("owner", "admin")),
        ):
    """
    async def check_role(ctx: WorkspaceContext = Depends(get_workspace_context)):
        if ctx.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=(
                    f"Role '{ctx.role}' cannot perform this action. "
                    f"Required: {', '.join(allowed_roles)}"
                ),
            )
        return None

    return check_role


def require_write_access():
    """Members and above may change company data; viewers are read-only."""
    return require_workspace_roles(
        *[role for role, level in ROLE_HIERARCHY.items() if level >= ROLE_HIERARCHY["member"]]
    )


async def require_superuser(current_user: dict = Depends(get_current_user)) -> dict:
    if not current_user.get("is_superuser"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Superuser access required",
        )
    return current_user
