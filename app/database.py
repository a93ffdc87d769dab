"""
🔌 Database Connection Setup - MongoDB

Centrale configuratie voor de verbinding met MongoDB
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.core.config import get_settings

logger = logging.getLogger(__name__)


class Database:
    """Singleton voor de MongoDB verbinding"""

    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None

    @classmethod
    async def connect(cls):
        """Verbindt met MongoDB"""
        if cls.client is None:
            settings = get_settings()

            cls.client = AsyncIOMotorClient(
                settings.mongodb_uri,
                maxPoolSize=10,
                minPoolSize=2,
            )
            cls.db = cls.client[settings.mongodb_db_name]

            # Test de verbinding
            await cls.client.admin.command("ping")
            logger.info(f"✅ Connected to MongoDB: {settings.mongodb_db_name}")

    @classmethod
    async def disconnect(cls):
        """Sluit de verbinding"""
        if cls.client is not None:
            cls.client.close()
            cls.client = None
            cls.db = None
            logger.info("❌ Disconnected from MongoDB")

    @classmethod
    def get_db(cls) -> AsyncIOMotorDatabase:
        """Geeft de database instantie terug"""
        if cls.db is None:
            raise RuntimeError("Database not connected. Call Database.connect() first.")
        return cls.db


# ============================================
# 🎯 DEPENDENCY voor FastAPI
# ============================================

async def get_database() -> AsyncIOMotorDatabase:
    """
    FastAPI dependency om de DB te injecteren

    Gebruik:
        @router.get("/leaderboard")
        async def leaderboard(db: AsyncIOMotorDatabase = Depends(get_database)):
            service = LeaderboardService(db)
            return await service.build_leaderboard()
    """
    return Database.get_db()


# ============================================
# 🏗️ INDEXEN (bij het opstarten)
# ============================================

async def create_indexes(db: Optional[AsyncIOMotorDatabase] = None):
    """
    Maakt de indexen aan die de app nodig heeft

    De unieke index op points_ledger (user_id, description) is wat dubbele
    toekenningen tegenhoudt, ook bij gelijktijdige requests.
    """
    db = db if db is not None else Database.get_db()

    # users
    await db["users"].create_index("email", unique=True)
    await db["users"].create_index("registration_status")

    # registrations (1-op-1 met users)
    await db["registrations"].create_index("user_id", unique=True)

    # points_ledger
    await db["points_ledger"].create_index([("user_id", 1), ("description", 1)], unique=True)
    await db["points_ledger"].create_index("user_id")
    await db["points_ledger"].create_index("category")

    # user_evaluations
    await db["user_evaluations"].create_index([("user_id", 1), ("type", 1)], unique=True)

    logger.info("✅ Indexes created successfully")
