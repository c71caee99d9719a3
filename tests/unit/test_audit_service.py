"""
Unit tests for orgdesk/services/audit_service.py
"""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from orgdesk.models.audit_log import AuditLog
from orgdesk.models.location import Location
from orgdesk.services.audit_service import (
    _compute_changed_fields,
    create_audit_log,
    snapshot,
)


def _mock_session():
    session = AsyncMock()
    session.add = MagicMock()
    return session


# ---------------------------------------------------------------------------
# _compute_changed_fields
# ---------------------------------------------------------------------------


def test_changed_fields_sorted_and_skip_updated_at():
    before = {"name": "HQ", "city": "Ankara", "updated_at": "2026-01-01"}
    after = {"name": "Head Office", "city": "Ankara", "phone": "123", "updated_at": "2026-02-01"}

    assert _compute_changed_fields(before, after) == ["name", "phone"]


def test_no_changes_is_none():
    state = {"name": "HQ", "updated_at": "2026-01-01"}

    assert _compute_changed_fields(state, dict(state, updated_at="2026-03-01")) is None


def test_create_or_delete_has_no_diff():
    assert _compute_changed_fields(None, {"name": "HQ"}) is None
    assert _compute_changed_fields({"name": "HQ"}, None) is None


# ---------------------------------------------------------------------------
# snapshot
# ---------------------------------------------------------------------------


def test_snapshot_is_json_safe():
    location_id = uuid.uuid4()
    location = Location(id=location_id, company_id=uuid.uuid4(), name="HQ")

    state = snapshot(location, exclude=["company_id"])

    assert state["id"] == str(location_id)
    assert state["name"] == "HQ"
    assert "company_id" not in state


# ---------------------------------------------------------------------------
# create_audit_log
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_audit_log_adds_and_flushes():
    db = _mock_session()
    workspace_id, entity_id = uuid.uuid4(), uuid.uuid4()

    audit = await create_audit_log(
        db,
        workspace_id=str(workspace_id),
        actor_id=str(uuid.uuid4()),
        action="UPDATE",
        entity_type="LOCATION",
        entity_id=str(entity_id),
        before_state={"name": "HQ"},
        after_state={"name": "Head Office"},
        actor_email="owner@example.com",
    )

    assert isinstance(audit, AuditLog)
    assert audit.workspace_id == workspace_id
    assert audit.entity_id == entity_id
    assert audit.company_id is None
    assert audit.changed_fields == ["name"]
    db.add.assert_called_once_with(audit)
    db.flush.assert_awaited_once()


@pytest.mark.asyncio
async def test_invalid_actor_id_is_dropped():
    db = _mock_session()

    audit = await create_audit_log(
        db,
        workspace_id=str(uuid.uuid4()),
        actor_id="not-a-uuid",
        action="CREATE",
        entity_type="LOCATION",
        entity_id=str(uuid.uuid4()),
    )

    assert audit.actor_id is None


@pytest.mark.asyncio
async def test_workspace_id_is_required():
    with pytest.raises(ValueError):
        await create_audit_log(
            _mock_session(),
            workspace_id=None,
            actor_id=None,
            action="CREATE",
            entity_type="LOCATION",
            entity_id=str(uuid.uuid4()),
        )
