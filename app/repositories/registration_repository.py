"""
RegistrationRepository - profile answers, predictions and completion flags.

One document per user, keyed by user_id.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from app.models.registration import Registration


class RegistrationRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["registrations"]

    async def get_by_user(self, user_id: str) -> Optional[Registration]:
        doc = await self.collection.find_one({"user_id": user_id})
        return Registration(**doc) if doc else None

    async def list_all(self) -> list[Registration]:
        docs = await self.collection.find({}).to_list(length=None)
        return [Registration(**doc) for doc in docs]

    async def list_with_predictions(self) -> list[Registration]:
        """Registrations that submitted at least one prediction."""
        cursor = self.collection.find({"predictions": {"$exists": True}})
        docs = await cursor.to_list(length=None)
        return [Registration(**doc) for doc in docs if doc.get("predictions")]

    async def upsert_fields(self, user_id: str, fields: dict[str, Any]) -> Registration:
        """
        Merge fields into the registration, creating it on first save.
        """
        now = datetime.now(timezone.utc)

        doc = await self.collection.find_one_and_update(
            {"user_id": user_id},
            {
                "$set": {**fields, "updated_at": now},
                "$setOnInsert": {"created_at": now},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        return Registration(**doc)

    async def set_section_complete(self, user_id: str, section: str) -> None:
        """Idempotent: setting an already-set flag changes nothing."""
        now = datetime.now(timezone.utc)
        await self.collection.update_one(
            {"user_id": user_id},
            {
                "$set": {f"completed_sections.{section}": True},
                "$setOnInsert": {"created_at": now},
            },
            upsert=True
        )

    async def set_predictions(self, user_id: str, predictions: dict[str, Any]) -> Registration:
        return await self.upsert_fields(user_id, {"predictions": predictions})

