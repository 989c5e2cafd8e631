"""Admin authentication: tokens, credential checks, the auth dependency."""

import asyncio
import importlib
from datetime import timedelta
from unittest.mock import patch

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials


@pytest.fixture
def auth():
    """Auth module reloaded with a known admin password and auth enabled."""
    with patch.dict("os.environ", {
        "ADMIN_USERNAME": "admin",
        "ADMIN_PASSWORD": "s3cret",
        "JWT_SECRET_KEY": "test-secret",
        "AUTH_DISABLED": "false",
    }):
        import switchfinder.auth
        yield importlib.reload(switchfinder.auth)
    importlib.reload(switchfinder.auth)


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestTokens:
    def test_round_trip(self, auth):
        token = auth.create_access_token("admin")
        assert auth.verify_token(token) == {"username": "admin", "role": "admin"}

    def test_expired_token(self, auth):
        token = auth.create_access_token("admin", expires_delta=timedelta(seconds=-5))
        assert auth.verify_token(token) is None

    def test_garbage_token(self, auth):
        assert auth.verify_token("not-a-jwt") is None


class TestLogin:
    def test_valid_credentials(self, auth):
        response = auth.login(auth.LoginRequest(username="admin", password="s3cret"))
        assert response.token_type == "bearer"
        assert auth.verify_token(response.access_token)["username"] == "admin"

    def test_wrong_password(self, auth):
        with pytest.raises(HTTPException) as exc:
            auth.login(auth.LoginRequest(username="admin", password="nope"))
        assert exc.value.status_code == 401

    def test_no_password_configured(self, auth):
        with patch.object(auth, "ADMIN_PASSWORD", ""):
            assert auth.authenticate_user("admin", "") is None


class TestDependency:
    def test_missing_credentials(self, auth):
        with pytest.raises(HTTPException) as exc:
            asyncio.run(auth.get_current_user(None))
        assert exc.value.status_code == 401

    def test_valid_bearer(self, auth):
        token = auth.create_access_token("admin")
        assert asyncio.run(auth.get_current_user(_bearer(token))) == "admin"

    def test_invalid_bearer(self, auth):
        with pytest.raises(HTTPException):
            asyncio.run(auth.get_current_user(_bearer("bad")))

    def test_auth_disabled(self, auth):
        with patch.object(auth, "AUTH_DISABLED", True):
            assert asyncio.run(auth.get_current_user(None)) == "dev"
