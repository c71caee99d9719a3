"""
Unit tests for orgdesk/services/auth_service.py and storage path helpers.
"""

import pytest
from jose import JWTError

from orgdesk.services.auth_service import (
    create_access_token,
    create_refresh_token,
    hash_password,
    verify_access_token,
    verify_password,
    verify_refresh_token,
)
from orgdesk.services.storage import build_company_blob_path, safe_filename


def test_password_hash_roundtrip():
    hashed = hash_password("Str0ngPassword!")

    assert hashed != "Str0ngPassword!"
    assert verify_password("Str0ngPassword!", hashed)
    assert not verify_password("wrong", hashed)


def test_access_token_claims():
    token = create_access_token("user-1", "a@example.com", is_superuser=True)
    claims = verify_access_token(token)

    assert claims["sub"] == "user-1"
    assert claims["email"] == "a@example.com"
    assert claims["superuser"] is True


def test_token_types_are_not_interchangeable():
    access = create_access_token("user-1", "a@example.com")
    refresh = create_refresh_token("user-1")

    assert verify_refresh_token(refresh)["sub"] == "user-1"
    with pytest.raises(JWTError):
        verify_access_token(refresh)
    with pytest.raises(JWTError):
        verify_refresh_token(access)


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("Sözleşme Taslağı v2.pdf", "S_zle_me_Tasla_v2.pdf"),
        ("report.xlsx", "report.xlsx"),
        ("  ../../etc/passwd ", ".._.._etc_passwd"),
        ("???", "file"),
    ],
)
def test_safe_filename(filename, expected):
    assert safe_filename(filename) == expected


def test_company_blob_path():
    assert build_company_blob_path("c1", "a b.txt", now_ms=1700000000000) == (
        "companies/c1/1700000000000_a_b.txt"
    )
