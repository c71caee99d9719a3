import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

ResourceType = Literal["page", "api", "feature", "report", "action", "widget", "submodule"]
PermissionAction = Literal["view", "edit", "approve", "manage"]


class ModuleCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50, pattern=r"^[a-z0-9_.-]+$")
    name: str = Field(..., min_length=1, max_length=100)
    display_name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=50)
    icon: Optional[str] = Field(None, max_length=50)
    is_active: bool = True
    sort_order: int = 0


class ModuleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    display_name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=50)
    icon: Optional[str] = Field(None, max_length=50)
    sort_order: Optional[int] = None


class ModuleResponse(BaseModel):
    id: uuid.UUID
    code: str
    name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    icon: Optional[str] = None
    is_active: bool
    sort_order: int = 0
    created_at: datetime

    model_config = {"from_attributes": True}


class CompanyModuleResponse(ModuleResponse):
    is_enabled: bool = True


class CompanyModuleToggle(BaseModel):
    is_enabled: bool


class ResourceCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=100)
    display_name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    resource_type: ResourceType = "page"
    path: Optional[str] = Field(None, max_length=255)
    parent_resource_id: Optional[uuid.UUID] = None
    is_active: bool = True
    sort_order: int = 0


class ResourceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    display_name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    resource_type: Optional[ResourceType] = None
    path: Optional[str] = Field(None, max_length=255)
    parent_resource_id: Optional[uuid.UUID] = None
    sort_order: Optional[int] = None


class ResourceResponse(BaseModel):
    id: uuid.UUID
    module_id: uuid.UUID
    code: str
    name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    resource_type: str
    path: Optional[str] = None
    parent_resource_id: Optional[uuid.UUID] = None
    is_active: bool
    sort_order: int = 0
    created_at: datetime

    model_config = {"from_attributes": True}


class PermissionCreate(BaseModel):
    action: PermissionAction
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    is_active: bool = True


class PermissionUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None


class PermissionResponse(BaseModel):
    id: uuid.UUID
    resource_id: uuid.UUID
    action: str
    name: Optional[str] = None
    description: Optional[str] = None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class RoleCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50, pattern=r"^[a-z0-9_.-]+$")
    name: str = Field(..., min_length=1, max_length=100)
    display_name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    workspace_id: Optional[uuid.UUID] = None
    company_id: Optional[uuid.UUID] = None
    is_system: bool = False
    is_active: bool = True
    sort_order: int = 0


class RoleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    display_name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    sort_order: Optional[int] = None


class RoleResponse(BaseModel):
    id: uuid.UUID
    code: str
    name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    workspace_id: Optional[uuid.UUID] = None
    company_id: Optional[uuid.UUID] = None
    is_system: bool
    is_active: bool
    sort_order: int = 0
    created_at: datetime

    model_config = {"from_attributes": True}


class RolePermissionGrant(BaseModel):
    permission_id: uuid.UUID
    workspace_id: Optional[uuid.UUID] = None
    company_id: Optional[uuid.UUID] = None
    is_granted: bool = True
    expires_at: Optional[datetime] = None


class RolePermissionResponse(BaseModel):
    id: uuid.UUID
    role_id: uuid.UUID
    permission_id: uuid.UUID
    workspace_id: Optional[uuid.UUID] = None
    company_id: Optional[uuid.UUID] = None
    is_granted: bool
    expires_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}
