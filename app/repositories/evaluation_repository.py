"""
EvaluationRepository - user_evaluations collection, one row per (user, type).
"""

from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.evaluation import Evaluation, UserEvaluation


class EvaluationRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["user_evaluations"]

    async def upsert(self, user_id: str, evaluation: Evaluation, type: str = "prediction") -> None:
        now = datetime.now(timezone.utc)
        await self.collection.update_one(
            {"user_id": user_id, "type": type},
            {
                "$set": {"evaluation": evaluation.model_dump(), "updated_at": now},
                "$setOnInsert": {"created_at": now},
            },
            upsert=True
        )

    async def get(self, user_id: str, type: str = "prediction") -> Optional[UserEvaluation]:
        doc = await self.collection.find_one({"user_id": user_id, "type": type})
        return UserEvaluation(**doc) if doc else None
