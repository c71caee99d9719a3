"""
Unit tests for orgdesk/services/file_service.py

Covers version numbering, current/latest selection, attachment targeting
and blob cleanup.
"""

import uuid
from datetime import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import HTTPException

from orgdesk.services import file_service
from orgdesk.services.file_service import (
    FIRST_VERSION,
    current_version,
    latest_version,
    next_version_label,
    pick_attachment_version,
)


def _version(label, day, is_current=False):
    return SimpleNamespace(
        id=uuid.uuid4(),
        version=label,
        created_at=datetime(2026, 1, day),
        is_current=is_current,
    )


def _execute_result(scalar=None, first=None):
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    result.first.return_value = first
    return result


def _mock_session(*results):
    session = AsyncMock()
    session.execute = AsyncMock(side_effect=list(results))
    return session


# ---------------------------------------------------------------------------
# next_version_label
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "labels, expected",
    [
        ([], FIRST_VERSION),
        (["1.0"], "1.1"),
        (["1.0", "1.1", "1.2"], "1.3"),
        (["1.9"], "2.0"),
        (["2", "1.5"], "2.1"),
        (["draft", "final"], FIRST_VERSION),
        (["draft", "3.4"], "3.5"),
        (["NaN", "1.0"], "1.1"),
    ],
)
def test_next_version_label(labels, expected):
    assert next_version_label(labels) == expected


# ---------------------------------------------------------------------------
# Version selection
# ---------------------------------------------------------------------------


def test_current_and_latest():
    old = _version("1.0", 1, is_current=True)
    new = _version("1.1", 5)

    assert current_version([old, new]) is old
    assert latest_version([old, new]) is new
    assert current_version([new]) is None
    assert latest_version([]) is None


def test_attachment_target_precedence():
    old = _version("1.0", 1)
    current = _version("1.1", 2, is_current=True)
    newest = _version("1.2", 3)
    versions = [old, current, newest]

    assert pick_attachment_version(versions, version_id=old.id) is old
    assert pick_attachment_version(versions, version_id=uuid.uuid4()) is None
    assert pick_attachment_version(versions, version_label="1.2") is newest
    assert pick_attachment_version(versions, addressed_version=old) is old
    assert pick_attachment_version(versions) is current
    assert pick_attachment_version([old, newest]) is newest
    assert pick_attachment_version([]) is None


def test_unknown_label_falls_through_to_current():
    current = _version("1.0", 1, is_current=True)

    assert pick_attachment_version([current], version_label="9.9") is current


# ---------------------------------------------------------------------------
# Template lookup
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_template_id_resolves_directly():
    template = SimpleNamespace(id=uuid.uuid4())
    db = _mock_session(_execute_result(scalar=template))

    found, version = await file_service.resolve_template_or_version(db, uuid.uuid4(), str(template.id))

    assert found is template
    assert version is None


@pytest.mark.asyncio
async def test_version_id_resolves_to_its_template():
    template = SimpleNamespace(id=uuid.uuid4())
    version = _version("1.0", 1)
    db = _mock_session(_execute_result(scalar=None), _execute_result(first=(version, template)))

    found, addressed = await file_service.resolve_template_or_version(db, uuid.uuid4(), str(version.id))

    assert found is template
    assert addressed is version


@pytest.mark.asyncio
async def test_unknown_file_id_is_404():
    db = _mock_session()

    with pytest.raises(HTTPException) as exc_info:
        await file_service.resolve_template_or_version(db, uuid.uuid4(), "not-a-uuid")

    assert exc_info.value.status_code == 404
    db.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_make_current_clears_previous():
    template = SimpleNamespace(id=uuid.uuid4())
    version = _version("1.1", 2)
    db = _mock_session(_execute_result(scalar=version), _execute_result())

    result = await file_service.make_current(db, template, str(version.id))

    assert result is version
    assert version.is_current is True
    assert db.execute.await_count == 2
    db.flush.assert_awaited_once()


# ---------------------------------------------------------------------------
# Blob cleanup
# ---------------------------------------------------------------------------


def test_delete_blobs_skips_failures():
    storage = MagicMock()
    storage.delete.side_effect = [None, RuntimeError("gone"), None]

    with patch.object(file_service, "storage", storage):
        deleted = file_service.delete_blobs(["a", None, "b", "c", ""])

    assert deleted == 2
    assert storage.delete.call_count == 3
