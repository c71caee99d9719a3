"""
Unit tests for orgdesk/services/tenancy_service.py

Covers:
  - company slugs from the first word of the name (Turkish transliteration)
  - workspace lookup by id or slug
  - member role resolution (owner shortcut, membership row, none)
  - company lookup by id, then by slug
"""

import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException

from orgdesk.services.tenancy_service import (
    get_member_role,
    parse_uuid,
    resolve_company,
    resolve_workspace,
    slugify_company_first_word,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _execute_result(scalar=None, scalars=None):
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    result.scalars.return_value.first.return_value = scalar
    result.scalars.return_value.all.return_value = scalars or []
    return result


def _mock_session(*results):
    session = AsyncMock()
    session.execute = AsyncMock(side_effect=list(results))
    return session


def _company(name: str):
    return SimpleNamespace(id=uuid.uuid4(), name=name)


# ---------------------------------------------------------------------------
# slugify_company_first_word
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Şeker Gıda A.Ş.", "seker"),
        ("Çağ Yazılım", "cag"),
        ("İnci Holding", "inci"),
        ("Acme Corp", "acme"),
        ("  Öz-Ünlü Tekstil", "ozunlu"),
        ("ABC123 Ltd", "abc123"),
    ],
)
def test_slug_uses_first_word(name, expected):
    assert slugify_company_first_word(name) == expected


@pytest.mark.parametrize("name", [None, "", "   "])
def test_slug_of_empty_name_is_empty(name):
    assert slugify_company_first_word(name) == ""


def test_parse_uuid():
    value = uuid.uuid4()
    assert parse_uuid(value) is value
    assert parse_uuid(str(value)) == value
    assert parse_uuid("acme") is None
    assert parse_uuid(None) is None


# ---------------------------------------------------------------------------
# resolve_workspace
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_resolve_workspace_returns_match():
    workspace = SimpleNamespace(id=uuid.uuid4(), slug="acme")
    db = _mock_session(_execute_result(scalar=workspace))

    assert await resolve_workspace(db, "acme") is workspace
    db.execute.assert_awaited_once()


@pytest.mark.asyncio
async def test_resolve_workspace_missing_raises_404():
    db = _mock_session(_execute_result(scalar=None))

    with pytest.raises(HTTPException) as exc_info:
        await resolve_workspace(db, str(uuid.uuid4()))

    assert exc_info.value.status_code == 404
    assert exc_info.value.detail == "Workspace not found"


# ---------------------------------------------------------------------------
# get_member_role
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_owner_role_skips_membership_lookup():
    owner_id = uuid.uuid4()
    workspace = SimpleNamespace(id=uuid.uuid4(), owner_id=owner_id)
    db = _mock_session()

    assert await get_member_role(db, workspace, str(owner_id)) == "owner"
    db.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_member_role_comes_from_membership():
    workspace = SimpleNamespace(id=uuid.uuid4(), owner_id=uuid.uuid4())
    db = _mock_session(_execute_result(scalar="member"))

    assert await get_member_role(db, workspace, str(uuid.uuid4())) == "member"


@pytest.mark.asyncio
async def test_non_member_has_no_role():
    workspace = SimpleNamespace(id=uuid.uuid4(), owner_id=uuid.uuid4())
    db = _mock_session(_execute_result(scalar=None))

    assert await get_member_role(db, workspace, str(uuid.uuid4())) is None


# ---------------------------------------------------------------------------
# resolve_company
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_resolve_company_by_id():
    company = _company("Acme Corp")
    db = _mock_session(_execute_result(scalar=company))

    assert await resolve_company(db, uuid.uuid4(), str(company.id)) is company
    assert db.execute.await_count == 1


@pytest.mark.asyncio
async def test_resolve_company_by_slug_picks_first_match():
    first = _company("Şeker Gıda A.Ş.")
    second = _company("Seker Lojistik")
    db = _mock_session(_execute_result(scalars=[_company("Acme"), first, second]))

    assert await resolve_company(db, uuid.uuid4(), "seker") is first


@pytest.mark.asyncio
async def test_resolve_company_slug_is_case_insensitive():
    company = _company("Acme Corp")
    db = _mock_session(_execute_result(scalars=[company]))

    assert await resolve_company(db, uuid.uuid4(), "ACME") is company


@pytest.mark.asyncio
async def test_resolve_company_unknown_uuid_falls_back_to_slug_then_404():
    db = _mock_session(
        _execute_result(scalar=None),
        _execute_result(scalars=[_company("Acme Corp")]),
    )

    with pytest.raises(HTTPException) as exc_info:
        await resolve_company(db, uuid.uuid4(), str(uuid.uuid4()))

    assert exc_info.value.status_code == 404
    assert exc_info.value.detail == "Company not found in this workspace"
    assert db.execute.await_count == 2
