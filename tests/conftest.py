import pytest

from orgdesk.services.auth_service import create_access_token

USER_ID = "0b7c0e64-3f0a-4c41-9d8e-7c1f6e7d2a10"
USER_EMAIL = "owner@example.com"


@pytest.fixture
def user_token():
    return create_access_token(user_id=USER_ID, email=USER_EMAIL)


@pytest.fixture
def auth_headers(user_token):
    return {"Authorization": f"Bearer {user_token}"}


@pytest.fixture
def user_id():
    return USER_ID
