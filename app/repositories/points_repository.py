"""
🎯 PointsRepository - points_ledger collection

Append-only register of point grants. The unique index on
(user_id, description) makes a second grant for the same description fail
with DuplicateKeyError at the store level.
"""

from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from app.models.points import LedgerEntry, PointsCategory


class PointsRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["points_ledger"]

    # ============================================
    # 📌 READ
    # ============================================

    async def find_entry(self, user_id: str, description: str) -> Optional[LedgerEntry]:
        doc = await self.collection.find_one({
            "user_id": user_id,
            "description": description
        })
        return LedgerEntry(**doc) if doc else None

    async def get_user_entries(self, user_id: str) -> list[LedgerEntry]:
        cursor = self.collection.find({"user_id": user_id}).sort("created_at", 1)
        docs = await cursor.to_list(length=None)
        return [LedgerEntry(**doc) for doc in docs]

    async def list_all(self) -> list[LedgerEntry]:
        """
        🔥 Every ledger row, oldest first.

        The leaderboard groups these in Python; the event is small enough
        that a single scan per request is fine.
        """
        cursor = self.collection.find({}).sort("created_at", 1)
        docs = await cursor.to_list(length=None)
        return [LedgerEntry(**doc) for doc in docs]

    async def get_user_total(self, user_id: str) -> int:
        entries = await self.get_user_entries(user_id)
        return sum(entry.points for entry in entries)

    # ============================================
    # 📌 WRITE
    # ============================================

    async def insert(self, entry: LedgerEntry) -> LedgerEntry:
        """
        Insert a ledger row.

        Raises pymongo DuplicateKeyError when (user_id, description) exists.
        """
        await self.collection.insert_one(entry.model_dump(mode="python"))
        return entry

    async def upsert(
        self,
        user_id: str,
        description: str,
        points: int,
        category: PointsCategory,
        reason: Optional[str] = None
    ) -> LedgerEntry:
        """
        Replace the row for (user_id, description) in one store operation.

        Only used for values that are recalculated, like prediction results.
        """
        now = datetime.now(timezone.utc)

        doc = await self.collection.find_one_and_update(
            {"user_id": user_id, "description": description},
            {
                "$set": {
                    "points": points,
                    "category": category.value,
                    "reason": reason,
                    "created_at": now,
                },
            },
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        return LedgerEntry(**doc)
