"""
Unit tests for orgdesk/services/db_errors.py

IntegrityErrors are built around fake driver exceptions carrying the
attributes asyncpg and psycopg2 expose (constraint_name, sqlstate, pgcode).
"""

import pytest
from sqlalchemy.exc import IntegrityError

from orgdesk.models.system import Role, RolePermission
from orgdesk.services.db_errors import (
    CONSTRAINT_ERRORS,
    FOREIGN_KEY_VIOLATION,
    UNIQUE_VIOLATION,
    constraint_name,
    sqlstate,
    translate_integrity_error,
)


class FakeDriverError(Exception):
    def __init__(self, message="", constraint_name=None, sqlstate=None):
        super().__init__(message)
        self.constraint_name = constraint_name
        self.sqlstate = sqlstate


class FakePsycopgError(Exception):
    def __init__(self, message="", pgcode=None):
        super().__init__(message)
        self.pgcode = pgcode


def _integrity_error(orig):
    return IntegrityError("INSERT ...", {}, orig)


def test_known_constraint_maps_to_friendly_error():
    exc = _integrity_error(FakeDriverError(constraint_name="users_email_key", sqlstate=UNIQUE_VIOLATION))

    error = translate_integrity_error(exc)

    assert error.code == "EMAIL_ALREADY_EXISTS"
    assert error.field == "email"
    assert error.status_code == 409


def test_constraint_read_from_wrapped_cause():
    driver = FakeDriverError(constraint_name="uq_suppliers_workspace_company_code")
    adapter = FakeDriverError("adapter error")
    adapter.__cause__ = driver
    adapter.constraint_name = None

    exc = _integrity_error(adapter)

    assert constraint_name(exc) == "uq_suppliers_workspace_company_code"
    error = translate_integrity_error(exc)
    assert error.code == "SUPPLIER_CODE_EXISTS"
    assert error.status_code == 400


def test_constraint_parsed_from_message():
    orig = FakePsycopgError(
        'duplicate key value violates unique constraint "workspaces_slug_key"',
        pgcode=UNIQUE_VIOLATION,
    )

    error = translate_integrity_error(_integrity_error(orig))

    assert error is CONSTRAINT_ERRORS["workspaces_slug_key"]


def test_unknown_constraint_falls_back_to_sqlstate():
    exc = _integrity_error(FakeDriverError(constraint_name="fk_mystery", sqlstate=FOREIGN_KEY_VIOLATION))

    assert sqlstate(exc) == FOREIGN_KEY_VIOLATION
    error = translate_integrity_error(exc)
    assert error.code == "INVALID_REFERENCE"
    assert error.status_code == 400


def test_unique_violation_without_constraint_is_duplicate():
    error = translate_integrity_error(_integrity_error(FakePsycopgError("dup", pgcode=UNIQUE_VIOLATION)))

    assert error.code == "DUPLICATE_VALUE"
    assert error.status_code == 409


def test_no_details_gives_generic_error():
    error = translate_integrity_error(_integrity_error(Exception("boom")))

    assert error.code == "CONSTRAINT_VIOLATION"
    assert error.status_code == 400


# ---------------------------------------------------------------------------
# Global scopes (NULL workspace and company) still collide
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("model, name", [
    (Role, "uq_roles_scope_code"),
    (RolePermission, "uq_role_permissions_scope"),
])
def test_scope_constraints_treat_null_scope_as_equal(model, name):
    constraint = next(c for c in model.__table__.constraints if c.name == name)

    assert constraint.dialect_options["postgresql"]["nulls_not_distinct"] is True
    assert {"workspace_id", "company_id"} <= {c.name for c in constraint.columns}
    assert name in CONSTRAINT_ERRORS
