"""
UserRepository - MongoDB access for the users collection.
"""

from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from app.models.user import User, UserCreate, UserRole, RegistrationStatus


class UserRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["users"]

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        doc = await self.collection.find_one({"_id": user_id})
        return User(**doc) if doc else None

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive, stored lowercase)."""
        doc = await self.collection.find_one({"email": email.strip().lower()})
        return User(**doc) if doc else None

    async def list_all(self) -> list[User]:
        cursor = self.collection.find({}).sort("created_at", 1)
        docs = await cursor.to_list(length=None)
        return [User(**doc) for doc in docs]

    async def create(self, user_data: UserCreate) -> User:
        """Create a new user."""
        user_doc = {
            "_id": user_data.id,
            "email": user_data.email.strip().lower(),
            "name": user_data.name,
            "role": user_data.role.value,
            "registration_status": user_data.registration_status.value,
            "created_at": datetime.now(timezone.utc),
            "is_active": True,
        }

        await self.collection.insert_one(user_doc)
        return User(**user_doc)

    async def update_role(self, user_id: str, role: UserRole) -> Optional[User]:
        result = await self.collection.find_one_and_update(
            {"_id": user_id},
            {"$set": {"role": role.value}},
            return_document=ReturnDocument.AFTER
        )
        return User(**result) if result else None

    async def update_status(self, user_id: str, registration_status: RegistrationStatus) -> Optional[User]:
        result = await self.collection.find_one_and_update(
            {"_id": user_id},
            {"$set": {"registration_status": registration_status.value}},
            return_document=ReturnDocument.AFTER
        )
        return User(**result) if result else None

    async def get_names(self) -> dict[str, str]:
        """Map user_id -> name, for formatting person fields."""
        cursor = self.collection.find({}, {"name": 1})
        docs = await cursor.to_list(length=None)
        return {doc["_id"]: doc.get("name", "Onbekend") for doc in docs}

    async def exists(self, user_id: str) -> bool:
        """Check if user exists."""
        count = await self.collection.count_documents({"_id": user_id}, limit=1)
        return count > 0
