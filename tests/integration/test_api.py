"""
API tests against the ASGI app with the database session mocked out.

Covers the health check, authentication, workspace membership, role checks,
the shape of every error body and the write paths whose side effects span
more than one row (headquarters flag, attendance approval, file blobs).
"""

import uuid
from datetime import date, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import IntegrityError
from sqlalchemy.sql.dml import Update

from orgdesk.database import get_db
from orgdesk.main import app
from orgdesk.models.attendance import AttendanceRecord
from orgdesk.models.audit_log import AuditLog
from orgdesk.models.file import FileTemplate
from orgdesk.models.location import Location
from orgdesk.services import file_service
from orgdesk.services.auth_service import create_access_token

COMPANY_ID = uuid.uuid4()
COMPANY_URL = f"/api/workspaces/acme/companies/{COMPANY_ID}"
LOCATIONS_URL = f"{COMPANY_URL}/locations"
NOW = datetime(2026, 3, 2, 9, 0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _execute_result(scalar=None, scalars=None, first=None):
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    result.scalars.return_value.first.return_value = scalar
    result.scalars.return_value.all.return_value = scalars or []
    result.first.return_value = first
    return result


def _workspace(owner_id):
    return SimpleNamespace(id=uuid.uuid4(), slug="acme", name="Acme", owner_id=owner_id)


def _company():
    return SimpleNamespace(id=COMPANY_ID, name="Acme Corp")


def _location(name="HQ", is_headquarters=True):
    now = datetime(2026, 3, 2, 9, 0)
    return SimpleNamespace(
        id=uuid.uuid4(),
        company_id=COMPANY_ID,
        name=name,
        code=None,
        location_type="office",
        phone=None,
        email=None,
        address=None,
        district=None,
        city="Istanbul",
        postal_code=None,
        country="Türkiye",
        is_headquarters=is_headquarters,
        notes=None,
        extra_metadata=None,
        created_at=now,
        updated_at=now,
    )


async def _stamp_server_defaults(entity, *args, **kwargs):
    if getattr(entity, "id", None) is None:
        entity.id = uuid.uuid4()
    for attr in ("created_at", "updated_at"):
        if hasattr(entity, attr) and getattr(entity, attr) is None:
            setattr(entity, attr, NOW)


def _executed(session, statement_type, table_name):
    return [
        c.args[0]
        for c in session.execute.await_args_list
        if isinstance(c.args[0], statement_type) and c.args[0].table.name == table_name
    ]


def _audit_rows(session):
    return [c.args[0] for c in session.add.call_args_list if isinstance(c.args[0], AuditLog)]


class FakeDriverError(Exception):
    def __init__(self, constraint_name):
        super().__init__(f'violates unique constraint "{constraint_name}"')
        self.constraint_name = constraint_name


@pytest.fixture
def db_session():
    session = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def client(db_session):
    async def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_health_ok(client, db_session):
    db_session.execute = AsyncMock(return_value=_execute_result())

    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "database": "connected"}


@pytest.mark.asyncio
async def test_health_database_down(client, db_session):
    db_session.execute = AsyncMock(side_effect=ConnectionRefusedError("no db"))

    response = await client.get("/health")

    assert response.status_code == 503
    assert response.json() == {"status": "unhealthy", "database": "disconnected"}


# ---------------------------------------------------------------------------
# Authentication and membership
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_missing_token_is_401(client):
    response = await client.get(LOCATIONS_URL)

    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated"}


@pytest.mark.asyncio
async def test_garbage_token_is_401(client):
    response = await client.get(LOCATIONS_URL, headers={"Authorization": "Bearer not.a.jwt"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid or expired token"}


@pytest.mark.asyncio
async def test_unknown_workspace_is_404(client, db_session, auth_headers):
    db_session.execute = AsyncMock(return_value=_execute_result(scalar=None))

    response = await client.get(LOCATIONS_URL, headers=auth_headers)

    assert response.status_code == 404
    assert response.json() == {"error": "Workspace not found"}


@pytest.mark.asyncio
async def test_non_member_is_403(client, db_session, auth_headers):
    db_session.execute = AsyncMock(side_effect=[
        _execute_result(scalar=_workspace(owner_id=uuid.uuid4())),
        _execute_result(scalar=None),
    ])

    response = await client.get(LOCATIONS_URL, headers=auth_headers)

    assert response.status_code == 403
    assert response.json() == {"error": "You do not have access to this workspace"}



@pytest.mark.asyncio
async def test_superuser_is_not_implicitly_a_member(client, db_session):
    token = create_access_token(
        user_id=str(uuid.uuid4()), email="root@example.com", is_superuser=True
    )
    db_session.execute = AsyncMock(side_effect=[
        _execute_result(scalar=_workspace(owner_id=uuid.uuid4())),
        _execute_result(scalar=None),
    ])

    response = await client.get(LOCATIONS_URL, headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 403
    assert response.json() == {"error": "You do not have access to this workspace"}


@pytest.mark.asyncio
async def test_owner_lists_locations(client, db_session, auth_headers, user_id):
    hq = _location()
    db_session.execute = AsyncMock(side_effect=[
        _execute_result(scalar=_workspace(owner_id=user_id)),
        _execute_result(scalar=_company()),
        _execute_result(scalars=[hq]),
    ])

    response = await client.get(LOCATIONS_URL, headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert len(body) == 1
    assert body[0]["id"] == str(hq.id)
    assert body[0]["is_headquarters"] is True
    assert body[0]["country"] == "Türkiye"


@pytest.mark.asyncio
async def test_viewer_cannot_write(client, db_session, auth_headers):
    db_session.execute = AsyncMock(side_effect=[
        _execute_result(scalar=_workspace(owner_id=uuid.uuid4())),
        _execute_result(scalar="viewer"),
        _execute_result(scalar=_company()),
    ])

    response = await client.post(LOCATIONS_URL, json={"name": "Depot"}, headers=auth_headers)

    assert response.status_code == 403
    assert "viewer" in response.json()["error"]
    db_session.add.assert_not_called()


# ---------------------------------------------------------------------------
# Error bodies
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_unknown_location_is_404(client, db_session, auth_headers, user_id):
    db_session.execute = AsyncMock(side_effect=[
        _execute_result(scalar=_workspace(owner_id=user_id)),
        _execute_result(scalar=_company()),
        _execute_result(scalar=None),
    ])

    response = await client.get(f"{LOCATIONS_URL}/{uuid.uuid4()}", headers=auth_headers)

    assert response.status_code == 404
    assert response.json() == {"error": "Location not found"}


@pytest.mark.asyncio
async def test_validation_errors_are_400(client):
    response = await client.post("/auth/register", json={
        "workspace_name": "Acme",
        "workspace_slug": "Not A Slug",
        "email": "not-an-email",
        "password": "short",
        "first_name": "Ada",
        "last_name": "Lovelace",
    })

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation failed"
    fields = {detail["field"] for detail in body["details"]}
    assert {"workspace_slug", "email", "password"} <= fields
    assert all(detail["message"] for detail in body["details"])


@pytest.mark.asyncio
async def test_integrity_error_is_translated(client, db_session, auth_headers, user_id):
    db_session.execute = AsyncMock(side_effect=[
        _execute_result(scalar=_workspace(owner_id=user_id)),
        _execute_result(scalar=_company()),
        _execute_result(first=None),
    ])
    db_session.flush = AsyncMock(side_effect=IntegrityError(
        "INSERT INTO locations ...", {}, FakeDriverError("uq_locations_company_name")
    ))

    response = await client.post(LOCATIONS_URL, json={"name": "HQ"}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json() == {
        "error": "Location name already exists",
        "code": "LOCATION_NAME_EXISTS",
        "field": "name",
    }


@pytest.mark.asyncio
async def test_unexpected_error_is_500(client, db_session, auth_headers):
    db_session.execute = AsyncMock(side_effect=RuntimeError("boom"))

    response = await client.get(LOCATIONS_URL, headers=auth_headers)

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


# ---------------------------------------------------------------------------
# Locations: one headquarters per company
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_new_headquarters_clears_the_old_one(client, db_session, auth_headers, user_id):
    db_session.execute = AsyncMock(side_effect=[
        _execute_result(scalar=_workspace(owner_id=user_id)),
        _execute_result(scalar=_company()),
        _execute_result(first=None),
        _execute_result(),
    ])
    db_session.refresh = AsyncMock(side_effect=_stamp_server_defaults)

    response = await client.post(
        LOCATIONS_URL, json={"name": "Ankara Office", "is_headquarters": True}, headers=auth_headers
    )

    assert response.status_code == 201
    assert response.json()["is_headquarters"] is True
    (stmt,) = _executed(db_session, Update, "locations")
    params = stmt.compile().params
    assert params["is_headquarters"] is False
    assert params["company_id_1"] == COMPANY_ID
    assert "locations.id !=" not in str(stmt)


@pytest.mark.asyncio
async def test_promoting_to_headquarters_keeps_only_that_location(
    client, db_session, auth_headers, user_id
):
    branch = Location(
        id=uuid.uuid4(),
        company_id=COMPANY_ID,
        name="Izmir Branch",
        country="Türkiye",
        is_headquarters=False,
        created_at=NOW,
        updated_at=NOW,
    )
    db_session.execute = AsyncMock(side_effect=[
        _execute_result(scalar=_workspace(owner_id=user_id)),
        _execute_result(scalar=_company()),
        _execute_result(scalar=branch),
        _execute_result(),
    ])

    response = await client.put(
        f"{LOCATIONS_URL}/{branch.id}", json={"is_headquarters": True}, headers=auth_headers
    )

    assert response.status_code == 200
    assert response.json()["is_headquarters"] is True
    (stmt,) = _executed(db_session, Update, "locations")
    assert "locations.id !=" in str(stmt)
    assert branch.id in stmt.compile().params.values()


@pytest.mark.asyncio
async def test_non_headquarters_create_leaves_flags_alone(client, db_session, auth_headers, user_id):
    db_session.execute = AsyncMock(side_effect=[
        _execute_result(scalar=_workspace(owner_id=user_id)),
        _execute_result(scalar=_company()),
        _execute_result(first=None),
    ])
    db_session.refresh = AsyncMock(side_effect=_stamp_server_defaults)

    response = await client.post(LOCATIONS_URL, json={"name": "Depot"}, headers=auth_headers)

    assert response.status_code == 201
    assert _executed(db_session, Update, "locations") == []


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_note_rejects_contact_of_another_customer(client, db_session, auth_headers, user_id):
    customer = SimpleNamespace(id=uuid.uuid4())
    db_session.execute = AsyncMock(side_effect=[
        _execute_result(scalar=_workspace(owner_id=user_id)),
        _execute_result(scalar=_company()),
        _execute_result(scalar=customer),
        _execute_result(first=None),
    ])

    response = await client.post(
        f"{COMPANY_URL}/customers/{customer.id}/notes",
        json={"content": "Called about renewal", "related_contact_id": str(uuid.uuid4())},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Related contact does not belong to this customer"}
    db_session.add.assert_not_called()


# ---------------------------------------------------------------------------
# Workspace members
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["patch", "delete"])
async def test_owner_membership_cannot_be_changed(client, db_session, auth_headers, user_id, method):
    owner_id = uuid.UUID(user_id)
    member = SimpleNamespace(id=uuid.uuid4(), role="owner")
    owner = SimpleNamespace(id=owner_id)
    db_session.execute = AsyncMock(side_effect=[
        _execute_result(scalar=_workspace(owner_id=owner_id)),
        _execute_result(first=(member, owner)),
    ])
    url = f"/api/workspaces/acme/members/{member.id}"

    if method == "patch":
        response = await client.patch(url, json={"role": "viewer"}, headers=auth_headers)
    else:
        response = await client.delete(url, headers=auth_headers)

    assert response.status_code == 400
    assert response.json() == {"error": "The workspace owner's membership cannot be changed"}
    assert member.role == "owner"
    db_session.delete.assert_not_called()


# ---------------------------------------------------------------------------
# Attendance
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_member_cannot_upsert_attendance_outside_scope(client, db_session, auth_headers):
    db_session.execute = AsyncMock(side_effect=[
        _execute_result(scalar=_workspace(owner_id=uuid.uuid4())),
        _execute_result(scalar="member"),
        _execute_result(scalar=_company()),
        _execute_result(scalar=None),
    ])

    response = await client.put(
        f"{COMPANY_URL}/attendance/records",
        json={"employee_id": str(uuid.uuid4()), "work_date": "2026-03-02", "check_in": "09:00"},
        headers=auth_headers,
    )

    assert response.status_code == 403
    assert response.json() == {"error": "You cannot edit attendance for this employee"}
    db_session.add.assert_not_called()


@pytest.mark.asyncio
async def test_admin_upsert_for_unknown_employee_is_400(client, db_session, auth_headers):
    db_session.execute = AsyncMock(side_effect=[
        _execute_result(scalar=_workspace(owner_id=uuid.uuid4())),
        _execute_result(scalar="admin"),
        _execute_result(scalar=_company()),
        _execute_result(scalar=None),
    ])

    response = await client.put(
        f"{COMPANY_URL}/attendance/records",
        json={"employee_id": str(uuid.uuid4()), "work_date": "2026-03-02"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Employee has no active profile in this company"}


@pytest.mark.asyncio
async def test_editing_approved_attendance_resets_to_pending(client, db_session, auth_headers, user_id):
    employee_id = uuid.uuid4()
    record = AttendanceRecord(
        id=uuid.uuid4(),
        company_id=COMPANY_ID,
        employee_id=employee_id,
        work_date=date(2026, 3, 2),
        check_in="09:00",
        location_shared=False,
        approval_status="approved",
        approved_by=uuid.uuid4(),
        approved_at=NOW,
        updated_at=NOW,
    )
    db_session.execute = AsyncMock(side_effect=[
        _execute_result(scalar=_workspace(owner_id=user_id)),
        _execute_result(scalar=_company()),
        _execute_result(scalar=uuid.uuid4()),
        _execute_result(scalar=record),
    ])

    response = await client.put(
        f"{COMPANY_URL}/attendance/records",
        json={"employee_id": str(employee_id), "work_date": "2026-03-02", "check_in": "09:20"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["check_in"] == "09:20"
    assert body["approval_status"] == "pending"
    assert body["approved_by"] is None
    assert body["approved_at"] is None
    (audit,) = _audit_rows(db_session)
    assert audit.action == "UPDATE"
    assert audit.before_state["approval_status"] == "approved"
    assert audit.after_state["approval_status"] == "pending"


@pytest.mark.asyncio
@pytest.mark.parametrize("view", ["daily", "weekly", "export"])
async def test_invalid_department_filter_is_400(client, db_session, auth_headers, user_id, view):
    db_session.execute = AsyncMock(side_effect=[
        _execute_result(scalar=_workspace(owner_id=user_id)),
        _execute_result(scalar=_company()),
    ])

    response = await client.get(
        f"{COMPANY_URL}/attendance/{view}",
        params={"department_id": "sales"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid department_id"}
    assert db_session.execute.await_count == 2


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_attachment_blob_removed_after_commit(
    client, db_session, auth_headers, user_id, monkeypatch
):
    template_id = uuid.uuid4()
    attachment = SimpleNamespace(
        id=uuid.uuid4(), name="scan.pdf", blob_path=f"companies/{COMPANY_ID}/scan.pdf"
    )
    db_session.execute = AsyncMock(side_effect=[
        _execute_result(scalar=_workspace(owner_id=user_id)),
        _execute_result(scalar=_company()),
        _execute_result(first=(attachment, template_id)),
    ])
    commits_seen = []

    def _delete_blobs(paths):
        commits_seen.append(db_session.commit.await_count)
        return len(paths)

    monkeypatch.setattr(file_service, "delete_blobs", _delete_blobs)

    response = await client.delete(
        f"{COMPANY_URL}/files/attachments/{attachment.id}", headers=auth_headers
    )

    assert response.status_code == 204
    db_session.delete.assert_awaited_once_with(attachment)
    assert commits_seen == [1]
    (audit,) = _audit_rows(db_session)
    assert audit.action == "UPDATE"
    assert audit.entity_type == "FILE"
    assert audit.entity_id == template_id
    assert audit.before_state["blob_path"] == attachment.blob_path


@pytest.mark.asyncio
async def test_file_blobs_removed_after_commit(client, db_session, auth_headers, user_id, monkeypatch):
    template = FileTemplate(id=uuid.uuid4(), company_id=COMPANY_ID, name="Contract")
    version = SimpleNamespace(id=uuid.uuid4(), blob_path="companies/x/v1.docx")
    attachment = SimpleNamespace(version_id=version.id, blob_path="companies/x/a1.pdf")
    db_session.execute = AsyncMock(side_effect=[
        _execute_result(scalar=_workspace(owner_id=user_id)),
        _execute_result(scalar=_company()),
        _execute_result(scalar=template),
        _execute_result(scalars=[version]),
        _execute_result(scalars=[attachment]),
    ])
    deleted = []

    def _delete_blobs(paths):
        deleted.append((db_session.commit.await_count, list(paths)))
        return len(paths)

    monkeypatch.setattr(file_service, "delete_blobs", _delete_blobs)

    response = await client.delete(f"{COMPANY_URL}/files/{template.id}", headers=auth_headers)

    assert response.status_code == 204
    assert template.deleted_at is not None
    assert deleted == [(1, ["companies/x/v1.docx", "companies/x/a1.pdf"])]


@pytest.mark.asyncio
async def test_adding_attachment_is_audited(client, db_session, auth_headers, user_id):
    template = SimpleNamespace(id=uuid.uuid4())
    version = SimpleNamespace(id=uuid.uuid4(), version="v2", is_current=True)
    db_session.execute = AsyncMock(side_effect=[
        _execute_result(scalar=_workspace(owner_id=user_id)),
        _execute_result(scalar=_company()),
        _execute_result(scalar=template),
        _execute_result(scalars=[version]),
    ])
    db_session.refresh = AsyncMock(side_effect=_stamp_server_defaults)

    response = await client.post(
        f"{COMPANY_URL}/files/{template.id}/attachments",
        json={"name": "signed.pdf", "blob_url": "https://cdn.example.com/signed.pdf"},
        headers=auth_headers,
    )

    assert response.status_code == 201
    assert response.json()["version_id"] == str(version.id)
    (audit,) = _audit_rows(db_session)
    assert audit.action == "UPDATE"
    assert audit.entity_id == template.id
    assert audit.after_state == {
        "attachment_id": response.json()["id"],
        "name": "signed.pdf",
        "version": "v2",
    }


# ---------------------------------------------------------------------------
# System catalog
# ---------------------------------------------------------------------------


@pytest.fixture
def superuser_headers():
    token = create_access_token(
        user_id=str(uuid.uuid4()), email="root@example.com", is_superuser=True
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_duplicate_global_role_code_is_409(client, db_session, superuser_headers):
    db_session.execute = AsyncMock(return_value=_execute_result(first=(uuid.uuid4(),)))

    response = await client.post(
        "/api/system/roles", json={"code": "auditor", "name": "Auditor"}, headers=superuser_headers
    )

    assert response.status_code == 409
    assert response.json() == {"error": "Role code already exists in this scope"}
    stmt = db_session.execute.await_args.args[0]
    assert "roles.workspace_id IS NULL" in str(stmt)
    assert "roles.company_id IS NULL" in str(stmt)
    db_session.add.assert_not_called()


@pytest.mark.asyncio
async def test_duplicate_global_grant_is_409(client, db_session, superuser_headers):
    role = SimpleNamespace(id=uuid.uuid4(), workspace_id=None, company_id=None)
    db_session.get = AsyncMock(side_effect=[role, SimpleNamespace(id=uuid.uuid4())])
    db_session.execute = AsyncMock(return_value=_execute_result(first=(uuid.uuid4(),)))

    response = await client.post(
        f"/api/system/roles/{role.id}/permissions",
        json={"permission_id": str(uuid.uuid4())},
        headers=superuser_headers,
    )

    assert response.status_code == 409
    assert response.json() == {"error": "The permission is already assigned to this role"}
    stmt = db_session.execute.await_args.args[0]
    assert "role_permissions.workspace_id IS NULL" in str(stmt)
    db_session.add.assert_not_called()
