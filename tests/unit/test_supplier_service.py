"""
Unit tests for orgdesk/services/supplier_service.py
"""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException

from orgdesk.services.supplier_service import ensure_supplier_code_available


def _execute_result(first=None):
    result = MagicMock()
    result.first.return_value = first
    return result


def _mock_session(*results):
    session = AsyncMock()
    session.execute = AsyncMock(side_effect=list(results))
    return session


# ---------------------------------------------------------------------------
# ensure_supplier_code_available
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_supplier_code_conflict():
    db = _mock_session(_execute_result(first=(uuid.uuid4(),)))

    with pytest.raises(HTTPException) as exc_info:
        await ensure_supplier_code_available(db, uuid.uuid4(), uuid.uuid4(), "SUP-001")

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "Supplier code already exists"


@pytest.mark.asyncio
async def test_supplier_without_code_skips_lookup():
    db = _mock_session()

    await ensure_supplier_code_available(db, uuid.uuid4(), uuid.uuid4(), None)

    db.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_conflicts_with_another_supplier():
    supplier_id = uuid.uuid4()
    db = _mock_session(_execute_result(first=(uuid.uuid4(),)))

    with pytest.raises(HTTPException) as exc_info:
        await ensure_supplier_code_available(
            db, uuid.uuid4(), uuid.uuid4(), "SUP-001", exclude_id=supplier_id
        )

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "Supplier code already exists"
    stmt = db.execute.await_args.args[0]
    assert "suppliers.id !=" in str(stmt)
    assert supplier_id in stmt.compile().params.values()


@pytest.mark.asyncio
async def test_update_keeping_own_code_passes():
    supplier_id = uuid.uuid4()
    db = _mock_session(_execute_result(first=None))

    await ensure_supplier_code_available(
        db, uuid.uuid4(), uuid.uuid4(), "SUP-001", exclude_id=supplier_id
    )

    assert db.execute.await_count == 1
