import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from orgdesk.database import get_db
from orgdesk.middleware.auth import get_current_user
from orgdesk.middleware.authorization import require_workspace_roles
from orgdesk.middleware.tenant import WorkspaceContext, get_workspace_context
from orgdesk.models.user import User
from orgdesk.models.workspace import Workspace, WorkspaceMember
from orgdesk.schemas.workspace import (
    MemberCreate,
    MemberResponse,
    MemberUpdate,
    WorkspaceCreate,
    WorkspaceResponse,
    WorkspaceUpdate,
)
from orgdesk.services.audit_service import create_audit_log, snapshot
from orgdesk.services.tenancy_service import parse_uuid

logger = structlog.get_logger()
router = APIRouter()


def _to_response(workspace: Workspace, role: str = None) -> WorkspaceResponse:
    response = WorkspaceResponse.model_validate(workspace)
    response.role = role
    return response


def _member_response(member: WorkspaceMember, user: User) -> MemberResponse:
    return MemberResponse(
        id=member.id,
        user_id=user.id,
        email=user.email,
        name=user.full_name,
        role=member.role,
        joined_at=member.joined_at,
    )


async def _slug_taken(db: AsyncSession, slug: str, exclude_id: uuid.UUID = None) -> bool:
    q = select(Workspace.id).where(Workspace.slug == slug)
    if exclude_id is not None:
        q = q.where(Workspace.id != exclude_id)
    return (await db.execute(q)).first() is not None


@router.get("", response_model=List[WorkspaceResponse])
async def list_workspaces(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Workspaces the caller owns or belongs to, with the caller's role."""
    user_id = parse_uuid(current_user["user_id"])
    result = await db.execute(
        select(Workspace, WorkspaceMember.role)
        .outerjoin(
            WorkspaceMember,
            (WorkspaceMember.workspace_id == Workspace.id) & (WorkspaceMember.user_id == user_id),
        )
        .where(or_(Workspace.owner_id == user_id, WorkspaceMember.user_id == user_id))
        .order_by(Workspace.name)
    )
    return [
        _to_response(ws, "owner" if ws.owner_id == user_id else role)
        for ws, role in result.all()
    ]


@router.post("", response_model=WorkspaceResponse, status_code=status.HTTP_201_CREATED)
async def create_workspace(
    body: WorkspaceCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if await _slug_taken(db, body.slug):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Workspace slug '{body.slug}' is already taken",
        )

    owner_id = parse_uuid(current_user["user_id"])
    workspace = Workspace(name=body.name, slug=body.slug, settings=body.settings, owner_id=owner_id)
    db.add(workspace)
    await db.flush()
    db.add(WorkspaceMember(workspace_id=workspace.id, user_id=owner_id, role="owner"))
    await db.flush()
    await db.refresh(workspace)

    await create_audit_log(
        db,
        workspace_id=str(workspace.id),
        actor_id=current_user["user_id"],
        action="CREATE",
        entity_type="WORKSPACE",
        entity_id=str(workspace.id),
        after_state=snapshot(workspace),
        actor_email=current_user.get("email"),
    )
    logger.info("workspace_created", workspace_id=str(workspace.id), slug=workspace.slug)
    return _to_response(workspace, "owner")


@router.get("/{workspace_id}", response_model=WorkspaceResponse)
async def get_workspace(ctx: WorkspaceContext = Depends(get_workspace_context)):
    return _to_response(ctx.workspace, ctx.role)


@router.patch("/{workspace_id}", response_model=WorkspaceResponse)
async def update_workspace(
    body: WorkspaceUpdate,
    ctx: WorkspaceContext = Depends(get_workspace_context),
    _auth: None = Depends(require_workspace_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db),
):
    workspace = ctx.workspace
    changes = body.model_dump(exclude_unset=True)
    if changes.get("slug") and await _slug_taken(db, changes["slug"], exclude_id=workspace.id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Workspace slug '{changes['slug']}' is already taken",
        )

    before = snapshot(workspace)
    for field, val in changes.items():
        setattr(workspace, field, val)
    await db.flush()
    await db.refresh(workspace)

    await create_audit_log(
        db,
        workspace_id=str(workspace.id),
        actor_id=ctx.user_id,
        action="UPDATE",
        entity_type="WORKSPACE",
        entity_id=str(workspace.id),
        before_state=before,
        after_state=snapshot(workspace),
        actor_email=ctx.user.get("email"),
    )
    return _to_response(workspace, ctx.role)


@router.get("/{workspace_id}/members", response_model=List[MemberResponse])
async def list_members(
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(WorkspaceMember, User)
        .join(User, User.id == WorkspaceMember.user_id)
        .where(WorkspaceMember.workspace_id == ctx.workspace.id)
        .order_by(WorkspaceMember.joined_at)
    )
    return [_member_response(member, user) for member, user in result.all()]


async def _get_member(db: AsyncSession, workspace: Workspace, member_id: str):
    parsed = parse_uuid(member_id)
    row = None
    if parsed is not None:
        result = await db.execute(
            select(WorkspaceMember, User)
            .join(User, User.id == WorkspaceMember.user_id)
            .where(WorkspaceMember.id == parsed, WorkspaceMember.workspace_id == workspace.id)
        )
        row = result.first()
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    member, user = row
    if user.id == workspace.owner_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The workspace owner's membership cannot be changed",
        )
    return member, user


@router.post(
    "/{workspace_id}/members",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_member(
    body: MemberCreate,
    ctx: WorkspaceContext = Depends(get_workspace_context),
    _auth: None = Depends(require_workspace_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(User).where(User.email == body.email, User.deleted_at.is_(None))
    )
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    existing = await db.execute(
        select(WorkspaceMember.id).where(
            WorkspaceMember.workspace_id == ctx.workspace.id,
            WorkspaceMember.user_id == user.id,
        )
    )
    if existing.first() is not None or user.id == ctx.workspace.owner_id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This user is already a member of the workspace",
        )

    member = WorkspaceMember(
        workspace_id=ctx.workspace.id,
        user_id=user.id,
        role=body.role,
        invited_by=parse_uuid(ctx.user_id),
    )
    db.add(member)
    await db.flush()
    await db.refresh(member)

    logger.info(
        "workspace_member_added",
        workspace_id=str(ctx.workspace.id),
        user_id=str(user.id),
        role=body.role,
    )
    return _member_response(member, user)


@router.patch("/{workspace_id}/members/{member_id}", response_model=MemberResponse)
async def update_member(
    member_id: str,
    body: MemberUpdate,
    ctx: WorkspaceContext = Depends(get_workspace_context),
    _auth: None = Depends(require_workspace_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db),
):
    member, user = await _get_member(db, ctx.workspace, member_id)
    member.role = body.role
    await db.flush()
    logger.info("workspace_member_role_changed", member_id=str(member.id), role=body.role)
    return _member_response(member, user)


@router.delete("/{workspace_id}/members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    member_id: str,
    ctx: WorkspaceContext = Depends(get_workspace_context),
    _auth: None = Depends(require_workspace_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db),
):
    member, _user = await _get_member(db, ctx.workspace, member_id)
    await db.delete(member)
    await db.flush()
    logger.info("workspace_member_removed", member_id=str(member.id))
