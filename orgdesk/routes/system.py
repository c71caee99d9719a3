from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from orgdesk.database import get_db
from orgdesk.middleware.authorization import require_superuser, require_workspace_roles
from orgdesk.middleware.tenant import CompanyContext, get_company_context
from orgdesk.models.system import (
    CompanyModule,
    Module,
    ModulePermission,
    ModuleResource,
    Role,
    RolePermission,
)
from orgdesk.schemas.system import (
    CompanyModuleResponse,
    CompanyModuleToggle,
    ModuleCreate,
    ModuleResponse,
    ModuleUpdate,
    PermissionCreate,
    PermissionResponse,
    PermissionUpdate,
    ResourceCreate,
    ResourceResponse,
    ResourceUpdate,
    RoleCreate,
    RolePermissionGrant,
    RolePermissionResponse,
    RoleResponse,
    RoleUpdate,
)
from orgdesk.services.audit_service import create_audit_log
from orgdesk.services.tenancy_service import parse_uuid

logger = structlog.get_logger()

# /api/system, superuser only
router = APIRouter(dependencies=[Depends(require_superuser)])
# /api/workspaces/{workspace_id}/companies/{company_id}/modules
company_router = APIRouter()


async def _get_or_404(db: AsyncSession, model, entity_id: str, detail: str):
    parsed = parse_uuid(entity_id)
    entity = await db.get(model, parsed) if parsed is not None else None
    if entity is None:
        raise HTTPException(status_code=404, detail=detail)
    return entity


async def _update(db: AsyncSession, entity, body):
    for field, val in body.model_dump(exclude_unset=True).items():
        setattr(entity, field, val)
    await db.flush()
    await db.refresh(entity)
    return entity


async def _toggle(db: AsyncSession, entity):
    entity.is_active = not entity.is_active
    await db.flush()
    await db.refresh(entity)
    return entity


# ---------- modules ----------

@router.get("/modules", response_model=List[ModuleResponse])
async def list_modules(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Module).order_by(Module.sort_order, Module.name))
    return [ModuleResponse.model_validate(m) for m in result.scalars().all()]


@router.post("/modules", response_model=ModuleResponse, status_code=status.HTTP_201_CREATED)
async def create_module(body: ModuleCreate, db: AsyncSession = Depends(get_db)):
    module = Module(**body.model_dump())
    db.add(module)
    await db.flush()
    await db.refresh(module)
    logger.info("module_created", module_id=str(module.id), code=module.code)
    return ModuleResponse.model_validate(module)


@router.put("/modules/{module_id}", response_model=ModuleResponse)
async def update_module(module_id: str, body: ModuleUpdate, db: AsyncSession = Depends(get_db)):
    module = await _get_or_404(db, Module, module_id, "Module not found")
    return ModuleResponse.model_validate(await _update(db, module, body))


@router.patch("/modules/{module_id}/toggle", response_model=ModuleResponse)
async def toggle_module(module_id: str, db: AsyncSession = Depends(get_db)):
    module = await _get_or_404(db, Module, module_id, "Module not found")
    return ModuleResponse.model_validate(await _toggle(db, module))


@router.delete("/modules/{module_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_module(module_id: str, db: AsyncSession = Depends(get_db)):
    module = await _get_or_404(db, Module, module_id, "Module not found")
    await db.delete(module)
    await db.flush()
    logger.info("module_deleted", module_id=module_id)


# ---------- resources ----------

async def _check_parent_resource(db: AsyncSession, module_id, parent_id, resource_id=None):
    if parent_id is None:
        return
    if resource_id is not None and parent_id == resource_id:
        raise HTTPException(status_code=400, detail="A resource cannot be its own parent")
    parent = await db.get(ModuleResource, parent_id)
    if parent is None or parent.module_id != module_id:
        raise HTTPException(
            status_code=400,
            detail="Parent resource must belong to the same module",
        )


@router.get("/modules/{module_id}/resources", response_model=List[ResourceResponse])
async def list_resources(module_id: str, db: AsyncSession = Depends(get_db)):
    module = await _get_or_404(db, Module, module_id, "Module not found")
    result = await db.execute(
        select(ModuleResource)
        .where(ModuleResource.module_id == module.id)
        .order_by(ModuleResource.sort_order, ModuleResource.name)
    )
    return [ResourceResponse.model_validate(r) for r in result.scalars().all()]


@router.post(
    "/modules/{module_id}/resources",
    response_model=ResourceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_resource(module_id: str, body: ResourceCreate, db: AsyncSession = Depends(get_db)):
    module = await _get_or_404(db, Module, module_id, "Module not found")
    await _check_parent_resource(db, module.id, body.parent_resource_id)
    resource = ModuleResource(module_id=module.id, **body.model_dump())
    db.add(resource)
    await db.flush()
    await db.refresh(resource)
    return ResourceResponse.model_validate(resource)


@router.put("/resources/{resource_id}", response_model=ResourceResponse)
async def update_resource(resource_id: str, body: ResourceUpdate, db: AsyncSession = Depends(get_db)):
    resource = await _get_or_404(db, ModuleResource, resource_id, "Resource not found")
    if "parent_resource_id" in body.model_fields_set:
        await _check_parent_resource(
            db, resource.module_id, body.parent_resource_id, resource_id=resource.id
        )
    return ResourceResponse.model_validate(await _update(db, resource, body))


@router.patch("/resources/{resource_id}/toggle", response_model=ResourceResponse)
async def toggle_resource(resource_id: str, db: AsyncSession = Depends(get_db)):
    resource = await _get_or_404(db, ModuleResource, resource_id, "Resource not found")
    return ResourceResponse.model_validate(await _toggle(db, resource))


@router.delete("/resources/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resource(resource_id: str, db: AsyncSession = Depends(get_db)):
    resource = await _get_or_404(db, ModuleResource, resource_id, "Resource not found")
    await db.delete(resource)
    await db.flush()


# ---------- permissions ----------

@router.get("/resources/{resource_id}/permissions", response_model=List[PermissionResponse])
async def list_permissions(resource_id: str, db: AsyncSession = Depends(get_db)):
    resource = await _get_or_404(db, ModuleResource, resource_id, "Resource not found")
    result = await db.execute(
        select(ModulePermission)
        .where(ModulePermission.resource_id == resource.id)
        .order_by(ModulePermission.action)
    )
    return [PermissionResponse.model_validate(p) for p in result.scalars().all()]


@router.post(
    "/resources/{resource_id}/permissions",
    response_model=PermissionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_permission(resource_id: str, body: PermissionCreate, db: AsyncSession = Depends(get_db)):
    resource = await _get_or_404(db, ModuleResource, resource_id, "Resource not found")
    permission = ModulePermission(resource_id=resource.id, **body.model_dump())
    db.add(permission)
    await db.flush()
    await db.refresh(permission)
    return PermissionResponse.model_validate(permission)


@router.put("/permissions/{permission_id}", response_model=PermissionResponse)
async def update_permission(permission_id: str, body: PermissionUpdate, db: AsyncSession = Depends(get_db)):
    permission = await _get_or_404(db, ModulePermission, permission_id, "Permission not found")
    return PermissionResponse.model_validate(await _update(db, permission, body))


@router.patch("/permissions/{permission_id}/toggle", response_model=PermissionResponse)
async def toggle_permission(permission_id: str, db: AsyncSession = Depends(get_db)):
    permission = await _get_or_404(db, ModulePermission, permission_id, "Permission not found")
    return PermissionResponse.model_validate(await _toggle(db, permission))


@router.delete("/permissions/{permission_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_permission(permission_id: str, db: AsyncSession = Depends(get_db)):
    permission = await _get_or_404(db, ModulePermission, permission_id, "Permission not found")
    await db.delete(permission)
    await db.flush()


# ---------- roles ----------

def _in_scope(column, value):
    return column.is_(None) if value is None else column == value


@router.get("/roles", response_model=List[RoleResponse])
async def list_roles(
    workspace_id: Optional[str] = Query(None),
    company_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    q = select(Role)
    if workspace_id:
        q = q.where(Role.workspace_id == parse_uuid(workspace_id))
    if company_id:
        q = q.where(Role.company_id == parse_uuid(company_id))
    result = await db.execute(q.order_by(Role.sort_order, Role.name))
    return [RoleResponse.model_validate(r) for r in result.scalars().all()]


@router.post("/roles", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(body: RoleCreate, db: AsyncSession = Depends(get_db)):
    existing = await db.execute(
        select(Role.id).where(
            Role.code == body.code,
            _in_scope(Role.workspace_id, body.workspace_id),
            _in_scope(Role.company_id, body.company_id),
        )
    )
    if existing.first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Role code already exists in this scope",
        )
    role = Role(**body.model_dump())
    db.add(role)
    await db.flush()
    await db.refresh(role)
    logger.info("role_created", role_id=str(role.id), code=role.code)
    return RoleResponse.model_validate(role)


@router.put("/roles/{role_id}", response_model=RoleResponse)
async def update_role(role_id: str, body: RoleUpdate, db: AsyncSession = Depends(get_db)):
    role = await _get_or_404(db, Role, role_id, "Role not found")
    return RoleResponse.model_validate(await _update(db, role, body))


@router.patch("/roles/{role_id}/toggle", response_model=RoleResponse)
async def toggle_role(role_id: str, db: AsyncSession = Depends(get_db)):
    role = await _get_or_404(db, Role, role_id, "Role not found")
    return RoleResponse.model_validate(await _toggle(db, role))


@router.delete("/roles/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(role_id: str, db: AsyncSession = Depends(get_db)):
    role = await _get_or_404(db, Role, role_id, "Role not found")
    if role.is_system:
        raise HTTPException(status_code=400, detail="System roles cannot be deleted")
    await db.delete(role)
    await db.flush()
    logger.info("role_deleted", role_id=role_id)


@router.get("/roles/{role_id}/permissions", response_model=List[RolePermissionResponse])
async def list_role_permissions(role_id: str, db: AsyncSession = Depends(get_db)):
    role = await _get_or_404(db, Role, role_id, "Role not found")
    result = await db.execute(
        select(RolePermission)
        .where(RolePermission.role_id == role.id)
        .order_by(RolePermission.created_at)
    )
    return [RolePermissionResponse.model_validate(rp) for rp in result.scalars().all()]


@router.post(
    "/roles/{role_id}/permissions",
    response_model=RolePermissionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def grant_role_permission(
    role_id: str,
    body: RolePermissionGrant,
    current_user: dict = Depends(require_superuser),
    db: AsyncSession = Depends(get_db),
):
    role = await _get_or_404(db, Role, role_id, "Role not found")
    if body.workspace_id is not None and body.company_id is not None:
        raise HTTPException(
            status_code=400,
            detail="A grant is scoped to a workspace or a company, not both",
        )
    is_global = role.workspace_id is None and role.company_id is None
    if body.workspace_id is None and body.company_id is None and not is_global:
        raise HTTPException(
            status_code=400,
            detail="Grants for scoped roles need a workspace_id or company_id",
        )
    await _get_or_404(db, ModulePermission, str(body.permission_id), "Permission not found")
    existing = await db.execute(
        select(RolePermission.id).where(
            RolePermission.role_id == role.id,
            RolePermission.permission_id == body.permission_id,
            _in_scope(RolePermission.workspace_id, body.workspace_id),
            _in_scope(RolePermission.company_id, body.company_id),
        )
    )
    if existing.first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="The permission is already assigned to this role",
        )

    grant = RolePermission(
        role_id=role.id,
        granted_by=parse_uuid(current_user["user_id"]),
        **body.model_dump(),
    )
    db.add(grant)
    await db.flush()
    await db.refresh(grant)
    logger.info(
        "role_permission_granted",
        role_id=str(role.id),
        permission_id=str(body.permission_id),
        is_granted=body.is_granted,
    )
    return RolePermissionResponse.model_validate(grant)


@router.delete("/roles/{role_id}/permissions/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_role_permission(role_id: str, assignment_id: str, db: AsyncSession = Depends(get_db)):
    role = await _get_or_404(db, Role, role_id, "Role not found")
    grant = await _get_or_404(db, RolePermission, assignment_id, "Role permission not found")
    if grant.role_id != role.id:
        raise HTTPException(status_code=404, detail="Role permission not found")
    await db.delete(grant)
    await db.flush()


# ---------- company modules ----------

@company_router.get("", response_model=List[CompanyModuleResponse])
async def list_company_modules(
    ctx: CompanyContext = Depends(get_company_context),
    db: AsyncSession = Depends(get_db),
):
    """Active modules with the company's enable flag; a module with no row is enabled."""
    result = await db.execute(
        select(Module, CompanyModule.is_enabled)
        .outerjoin(
            CompanyModule,
            (CompanyModule.module_id == Module.id) & (CompanyModule.company_id == ctx.company.id),
        )
        .where(Module.is_active.is_(True))
        .order_by(Module.sort_order, Module.name)
    )
    items = []
    for module, is_enabled in result.all():
        item = CompanyModuleResponse.model_validate(module)
        item.is_enabled = True if is_enabled is None else is_enabled
        items.append(item)
    return items


@company_router.put("/{module_id}", response_model=CompanyModuleResponse)
async def set_company_module(
    module_id: str,
    body: CompanyModuleToggle,
    ctx: CompanyContext = Depends(get_company_context),
    _auth: None = Depends(require_workspace_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db),
):
    module = await _get_or_404(db, Module, module_id, "Module not found")
    result = await db.execute(
        select(CompanyModule).where(
            CompanyModule.company_id == ctx.company.id,
            CompanyModule.module_id == module.id,
        )
    )
    row = result.scalar_one_or_none()
    before = {"is_enabled": row.is_enabled if row else True}
    if row is None:
        row = CompanyModule(company_id=ctx.company.id, module_id=module.id)
        db.add(row)
    row.is_enabled = body.is_enabled
    row.updated_by = parse_uuid(ctx.user_id)
    await db.flush()

    await create_audit_log(
        db,
        workspace_id=str(ctx.workspace.id),
        company_id=str(ctx.company.id),
        actor_id=ctx.user_id,
        action="UPDATE",
        entity_type="COMPANY_MODULE",
        entity_id=str(module.id),
        before_state=before,
        after_state={"is_enabled": body.is_enabled},
        actor_email=ctx.user.get("email"),
    )

    item = CompanyModuleResponse.model_validate(module)
    item.is_enabled = body.is_enabled
    return item
