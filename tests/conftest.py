"""
Pytest fixtures and configuration for all tests.
"""

import os

# Settings are read at import time by app.core.security
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")
os.environ.setdefault("MONGODB_DB_NAME", "bovenkamer_test")
os.environ.setdefault("JWT_SECRET", "test-secret-key-at-least-32-chars-long")
os.environ.setdefault("APP_ENV", "test")
# Evaluations use the fixed fallback unless a test injects an API key
os.environ["ANTHROPIC_API_KEY"] = ""

import pytest
from typing import AsyncGenerator

from mongomock_motor import AsyncMongoMockClient
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.database import create_indexes

TEST_DB_NAME = "bovenkamer_test"


@pytest.fixture(scope="function")
async def test_db() -> AsyncGenerator[AsyncIOMotorDatabase, None]:
    """
    Provide a clean in-memory database for each test.

    The indexes are created like on startup, so the unique index on the
    points ledger is enforced.
    """
    client = AsyncMongoMockClient()
    db = client[TEST_DB_NAME]
    await create_indexes(db)

    yield db

    # Cleanup: drop all collections after test
    for collection_name in await db.list_collection_names():
        await db[collection_name].drop()


@pytest.fixture
def sample_user_data():
    """Sample user data for testing."""
    return {
        "id": "user-anna",
        "email": "Anna@Example.com",
        "name": "Anna",
    }


@pytest.fixture
def actual_results():
    """A full set of actual outcomes."""
    return {
        "wineBottles": 20,
        "beerCrates": 5,
        "meatKilos": 10.0,
        "firstSleeper": "user-bert",
        "spontaneousSinger": "user-anna",
        "firstToLeave": "user-carla",
        "lastToLeave": "user-bert",
        "loudestLaugher": "user-anna",
        "longestStoryTeller": "user-carla",
        "somethingBurned": True,
        "outsideTemp": -2.0,
        "lastGuestTime": 10,
    }
