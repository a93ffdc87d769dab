"""
Fixtures for integration tests
"""

import pytest
from httpx import ASGITransport, AsyncClient

from app.main import app
from app.database import Database
from app.core.security import create_access_token
from tests.factories import insert_user


@pytest.fixture
async def client(test_db):
    """
    HTTP client for testing API endpoints.

    Points the Database singleton at the test database.
    """
    original_db = Database.db
    Database.db = test_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    Database.db = original_db


@pytest.fixture
async def participant(test_db):
    return await insert_user(test_db, "user-anna", "Anna")


@pytest.fixture
async def auth_headers(participant):
    """Authorization header for a regular participant."""
    token = create_access_token(participant["_id"], participant["email"])
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin_headers(test_db):
    """Authorization header for an admin."""
    admin = await insert_user(test_db, "user-admin", "Admin", role="admin", email="admin@example.com")
    token = create_access_token(admin["_id"], admin["email"], "admin")
    return {"Authorization": f"Bearer {token}"}
