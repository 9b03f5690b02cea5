"""Pytest configuration and fixtures."""

from pathlib import Path
from typing import Optional

import pytest
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from fastapi.testclient import TestClient

from app.api.deps import AuthenticatedUser, get_current_user, http_bearer
from app.core.config import Settings
from app.core.database import Database
from app.main import create_app


async def bearer_is_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
) -> AuthenticatedUser:
    """Test identity: the bearer token itself is the user id."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No authorization token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return AuthenticatedUser(user_id=credentials.credentials)


def auth(user_id: str) -> dict:
    return {"Authorization": f"Bearer {user_id}"}


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throwaway SQLite file, AI provider unset."""
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test_chats.db'}",
        GEMINI_API_KEY="",
        AUTH0_DOMAIN="",
        AUTH0_API_AUDIENCE="",
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def database(test_settings: Settings) -> Database:
    return Database(test_settings.DATABASE_URL)


@pytest.fixture
def app(test_settings: Settings, database: Database):
    app = create_app(test_settings, database=database)
    app.dependency_overrides[get_current_user] = bearer_is_user_id
    return app


@pytest.fixture
def client(app) -> TestClient:
    """Test client with lifespan, so the database is connected."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def rectangle_payload() -> dict:
    return {
        "id": "rect-1",
        "type": "rectangle",
        "x": 10,
        "y": 10,
        "width": 90,
        "height": 70,
        "angle": 0,
        "strokeColor": "#1971c2",
        "backgroundColor": "transparent",
        "strokeWidth": 2,
        "strokeStyle": "solid",
        "roughness": 1,
        "opacity": 1,
        "isDeleted": False,
    }
