"""
Unit tests for orgdesk/services/department_service.py
"""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException

from orgdesk.services.department_service import (
    check_parent,
    check_unique,
    check_unit_name,
    creates_cycle,
)


def _execute_result(first=None, rows=None):
    result = MagicMock()
    result.first.return_value = first
    result.all.return_value = rows or []
    return result


def _mock_session(*results):
    session = AsyncMock()
    session.execute = AsyncMock(side_effect=list(results))
    return session


# ---------------------------------------------------------------------------
# creates_cycle
# ---------------------------------------------------------------------------


def test_cycle_detection():
    root, child, grandchild, other = (uuid.uuid4() for _ in range(4))
    parents = {root: None, child: root, grandchild: child, other: None}

    assert creates_cycle(parents, root, root)
    assert creates_cycle(parents, root, grandchild)
    assert creates_cycle(parents, child, grandchild)
    assert not creates_cycle(parents, grandchild, root)
    assert not creates_cycle(parents, root, other)


def test_cycle_detection_tolerates_existing_loop():
    a, b, c = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    parents = {a: b, b: a, c: None}

    assert not creates_cycle(parents, c, a)


# ---------------------------------------------------------------------------
# check_parent
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_parent_from_other_company_rejected():
    db = _mock_session(_execute_result(rows=[(uuid.uuid4(), None)]))

    with pytest.raises(HTTPException) as exc_info:
        await check_parent(db, uuid.uuid4(), uuid.uuid4())

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "Parent department must belong to the same company"


@pytest.mark.asyncio
async def test_parent_under_own_child_rejected():
    dept, child = uuid.uuid4(), uuid.uuid4()
    db = _mock_session(_execute_result(rows=[(dept, None), (child, dept)]))

    with pytest.raises(HTTPException) as exc_info:
        await check_parent(db, uuid.uuid4(), child, department_id=dept)

    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_valid_parent_passes():
    dept, parent = uuid.uuid4(), uuid.uuid4()
    db = _mock_session(_execute_result(rows=[(dept, None), (parent, None)]))

    await check_parent(db, uuid.uuid4(), parent, department_id=dept)


# ---------------------------------------------------------------------------
# Uniqueness
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_duplicate_department_code():
    db = _mock_session(_execute_result(first=None), _execute_result(first=(uuid.uuid4(),)))

    with pytest.raises(HTTPException) as exc_info:
        await check_unique(db, uuid.uuid4(), "Sales", "SLS")

    assert exc_info.value.detail == "Department code already exists"


@pytest.mark.asyncio
async def test_empty_code_is_not_checked():
    db = _mock_session(_execute_result(first=None))

    await check_unique(db, uuid.uuid4(), "Sales", None)

    assert db.execute.await_count == 1


@pytest.mark.asyncio
async def test_duplicate_unit_name_is_409():
    db = _mock_session(_execute_result(first=(uuid.uuid4(),)))

    with pytest.raises(HTTPException) as exc_info:
        await check_unit_name(db, uuid.uuid4(), "Field Sales")

    assert exc_info.value.status_code == 409
    assert exc_info.value.detail == "Unit name already exists in this department"


@pytest.mark.asyncio
async def test_renaming_unit_excludes_itself():
    unit_id = uuid.uuid4()
    db = _mock_session(_execute_result(first=None))

    await check_unit_name(db, uuid.uuid4(), "Field Sales", exclude_id=unit_id)

    stmt = db.execute.await_args.args[0]
    assert "units.id !=" in str(stmt)
    assert unit_id in stmt.compile().params.values()
