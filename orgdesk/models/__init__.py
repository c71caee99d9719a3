"""Central model registry; import all models so Alembic autodiscover works."""

from orgdesk.database import Base  # noqa: F401

from orgdesk.models.user import User  # noqa: F401
from orgdesk.models.workspace import Workspace, WorkspaceMember, WorkspaceCompany  # noqa: F401
from orgdesk.models.company import Company  # noqa: F401
from orgdesk.models.department import Department, Unit  # noqa: F401
from orgdesk.models.location import Location  # noqa: F401
from orgdesk.models.customer import (  # noqa: F401
    Customer,
    CustomerAddress,
    CustomerContact,
    CustomerNote,
)
from orgdesk.models.supplier import Supplier, SupplierAddress, SupplierContact  # noqa: F401
from orgdesk.models.file import FileTemplate, FileVersion, FileAttachment  # noqa: F401
from orgdesk.models.settings import WorkspaceSettings, CompanySettings  # noqa: F401
from orgdesk.models.system import (  # noqa: F401
    Module,
    CompanyModule,
    ModuleResource,
    ModulePermission,
    Role,
    RolePermission,
)
from orgdesk.models.employee import EmployeeProfile  # noqa: F401
from orgdesk.models.attendance import AttendanceRecord  # noqa: F401
from orgdesk.models.audit_log import AuditLog  # noqa: F401
