"""
PredictionRepository - the actual-outcomes snapshot.

There is exactly one logical snapshot per event, stored under a fixed _id and
overwritten on every save (last write wins).
"""

from datetime import datetime, timezone
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.prediction import PredictionResultSnapshot

SNAPSHOT_ID = "current"


class PredictionRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["prediction_results"]

    async def get_snapshot(self) -> Optional[PredictionResultSnapshot]:
        doc = await self.collection.find_one({"_id": SNAPSHOT_ID})
        return PredictionResultSnapshot(**doc) if doc else None

    async def save_snapshot(self, results: dict[str, Any], updated_by: str) -> PredictionResultSnapshot:
        now = datetime.now(timezone.utc)
        await self.collection.update_one(
            {"_id": SNAPSHOT_ID},
            {"$set": {"results": results, "updated_at": now, "updated_by": updated_by}},
            upsert=True
        )
        return PredictionResultSnapshot(results=results, updated_at=now, updated_by=updated_by)
