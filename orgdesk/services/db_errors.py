"""Translate database constraint violations into client-facing errors."""

import re
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError

_CONSTRAINT_IN_MESSAGE = re.compile(r'constraint "([^"]+)"')

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
NOT_NULL_VIOLATION = "23502"
CHECK_VIOLATION = "23514"


@dataclass(frozen=True)
class DatabaseError:
    code: str
    message: str
    field: Optional[str] = None
    status_code: int = 409


CONSTRAINT_ERRORS = {
    "users_email_key": DatabaseError(
        "EMAIL_ALREADY_EXISTS", "This email address is already registered", "email"
    ),
    "workspaces_slug_key": DatabaseError(
        "WORKSPACE_SLUG_EXISTS", "This workspace slug is already taken", "slug"
    ),
    "uq_workspace_member": DatabaseError(
        "MEMBER_ALREADY_EXISTS", "This user is already a member of the workspace", "email"
    ),
    "uq_workspace_company": DatabaseError(
        "COMPANY_ALREADY_LINKED", "This company is already part of the workspace"
    ),
    "uq_departments_company_name": DatabaseError(
        "DEPARTMENT_NAME_EXISTS", "Department name already exists", "name", 400
    ),
    "uq_departments_company_code": DatabaseError(
        "DEPARTMENT_CODE_EXISTS", "Department code already exists", "code", 400
    ),
    "uq_units_department_name": DatabaseError(
        "UNIT_NAME_EXISTS", "Unit name already exists in this department", "name"
    ),
    "ck_units_staff_count": DatabaseError(
        "INVALID_STAFF_COUNT", "Staff count cannot be negative", "staff_count", 400
    ),
    "uq_locations_company_name": DatabaseError(
        "LOCATION_NAME_EXISTS", "Location name already exists", "name", 400
    ),
    "uq_locations_company_code": DatabaseError(
        "LOCATION_CODE_EXISTS", "Location code already exists", "code", 400
    ),
    "uq_locations_company_headquarters": DatabaseError(
        "HEADQUARTERS_EXISTS", "The company already has a headquarters", "is_headquarters", 400
    ),
    "uq_suppliers_workspace_company_code": DatabaseError(
        "SUPPLIER_CODE_EXISTS", "Supplier code already exists", "supplier_code", 400
    ),
    "ck_customers_discount_rate": DatabaseError(
        "INVALID_DISCOUNT_RATE", "Discount rate must be between 0 and 100", "discount_rate", 400
    ),
    "ck_customers_credit_limit": DatabaseError(
        "INVALID_CREDIT_LIMIT", "Credit limit cannot be negative", "credit_limit", 400
    ),
    "uq_file_versions_template_version": DatabaseError(
        "VERSION_EXISTS", "This version already exists for the file", "version", 400
    ),
    "modules_code_key": DatabaseError(
        "MODULE_CODE_EXISTS", "Module code already exists", "code"
    ),
    "uq_module_resources_module_code": DatabaseError(
        "RESOURCE_CODE_EXISTS", "Resource code already exists in this module", "code"
    ),
    "uq_module_permissions_resource_action": DatabaseError(
        "PERMISSION_EXISTS", "This action is already defined for the resource", "action"
    ),
    "uq_roles_scope_code": DatabaseError(
        "ROLE_CODE_EXISTS", "Role code already exists in this scope", "code"
    ),
    "uq_role_permissions_scope": DatabaseError(
        "ROLE_PERMISSION_EXISTS", "The permission is already assigned to this role"
    ),
    "ck_role_permissions_single_scope": DatabaseError(
        "INVALID_PERMISSION_SCOPE",
        "A permission is granted for a workspace or a company, not both",
        status_code=400,
    ),
    "uq_employee_profiles_company_user": DatabaseError(
        "EMPLOYEE_EXISTS", "This user already has an employee profile in the company", "user_id"
    ),
    "uq_attendance_company_employee_date": DatabaseError(
        "ATTENDANCE_EXISTS", "An attendance record already exists for this day"
    ),
}

_GENERIC_BY_SQLSTATE = {
    UNIQUE_VIOLATION: DatabaseError("DUPLICATE_VALUE", "A record with these values already exists"),
    FOREIGN_KEY_VIOLATION: DatabaseError(
        "INVALID_REFERENCE", "A referenced record does not exist", status_code=400
    ),
    NOT_NULL_VIOLATION: DatabaseError(
        "MISSING_VALUE", "A required value is missing", status_code=400
    ),
    CHECK_VIOLATION: DatabaseError(
        "INVALID_VALUE", "A value is outside the allowed range", status_code=400
    ),
}

_FALLBACK = DatabaseError("CONSTRAINT_VIOLATION", "The data violates a database constraint", status_code=400)


def _driver_error(exc: IntegrityError):
    orig = getattr(exc, "orig", None)
    # The asyncpg adapter wraps the driver exception as __cause__
    return getattr(orig, "__cause__", None) or orig


def constraint_name(exc: IntegrityError) -> Optional[str]:
    for candidate in (_driver_error(exc), getattr(exc, "orig", None)):
        name = getattr(candidate, "constraint_name", None)
        if name:
            return name
    match = _CONSTRAINT_IN_MESSAGE.search(str(exc.orig if exc.orig is not None else exc))
    return match.group(1) if match else None


def sqlstate(exc: IntegrityError) -> Optional[str]:
    for candidate in (_driver_error(exc), getattr(exc, "orig", None)):
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return code
    return None


def translate_integrity_error(exc: IntegrityError) -> DatabaseError:
    name = constraint_name(exc)
    if name and name in CONSTRAINT_ERRORS:
        return CONSTRAINT_ERRORS[name]
    return _GENERIC_BY_SQLSTATE.get(sqlstate(exc), _FALLBACK)
