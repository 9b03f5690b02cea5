"""Tests for bearer token authentication."""

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from app.api import deps
from app.api.deps import get_current_user
from app.core.auth0 import Auth0ConfigError, Auth0TokenError, Auth0TokenValidator
from app.core.config import Settings


class StubValidator:

    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error

    async def validate_token(self, token):
        if self.error:
            raise self.error
        return self.payload

    def get_user_id(self, payload):
        return payload.get("sub", "")


def bearer(token="token"):
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


@pytest.mark.asyncio
async def test_missing_credentials():
    with pytest.raises(HTTPException) as exc:
        await get_current_user(None)
    assert exc.value.status_code == 401
    assert exc.value.headers == {"WWW-Authenticate": "Bearer"}


@pytest.mark.asyncio
async def test_valid_token(monkeypatch):
    monkeypatch.setattr(deps, "auth0_validator", StubValidator({"sub": "auth0|abc", "email": "a@b.c"}))
    user = await get_current_user(bearer())
    assert user.user_id == "auth0|abc"
    assert user == deps.AuthenticatedUser(user_id="auth0|abc")


@pytest.mark.asyncio
async def test_invalid_token(monkeypatch):
    monkeypatch.setattr(deps, "auth0_validator", StubValidator(error=Auth0TokenError("Token expired")))
    with pytest.raises(HTTPException) as exc:
        await get_current_user(bearer())
    assert exc.value.status_code == 401
    assert exc.value.detail == "Token expired"


@pytest.mark.asyncio
async def test_token_without_subject(monkeypatch):
    monkeypatch.setattr(deps, "auth0_validator", StubValidator({"email": "a@b.c"}))
    with pytest.raises(HTTPException) as exc:
        await get_current_user(bearer())
    assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_unconfigured_provider(monkeypatch):
    monkeypatch.setattr(deps, "auth0_validator", StubValidator(error=Auth0ConfigError("not configured")))
    with pytest.raises(HTTPException) as exc:
        await get_current_user(bearer())
    assert exc.value.status_code == 500


@pytest.mark.asyncio
async def test_validator_refuses_without_configuration():
    validator = Auth0TokenValidator(Settings(AUTH0_DOMAIN="", AUTH0_API_AUDIENCE=""))
    with pytest.raises(Auth0ConfigError):
        await validator.validate_token("anything")


@pytest.mark.asyncio
async def test_malformed_token_rejected():
    validator = Auth0TokenValidator(Settings(AUTH0_DOMAIN="tenant.example.test", AUTH0_API_AUDIENCE="api"))
    assert validator.issuer == "https://tenant.example.test/"
    with pytest.raises(Auth0TokenError):
        await validator.validate_token("not-a-jwt")


@pytest.mark.asyncio
async def test_token_without_key_id_rejected():
    validator = Auth0TokenValidator(Settings(AUTH0_DOMAIN="tenant.example.test", AUTH0_API_AUDIENCE="api"))
    token = jwt.encode({"sub": "auth0|abc"}, "secret", algorithm="HS256")
    with pytest.raises(Auth0TokenError, match="no kid"):
        await validator.validate_token(token)
