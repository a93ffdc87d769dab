"""
Puntenservice - schrijft toekenningen naar het puntenregister

Elke toekenning heeft een description die per gebruiker maar één keer mag
voorkomen. Een tweede toekenning met dezelfde description is geen fout: er
worden dan 0 punten toegekend.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.models.points import LedgerEntry, PointsCategory
from app.models.user import User
from app.repositories.points_repository import PointsRepository
from app.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class PointsServiceError(Exception):
    """Base exception for points service errors."""
    pass


class InvalidAdjustmentError(PointsServiceError):
    """Raised when a manual adjustment is rejected by validation."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code


class UserNotFoundError(PointsServiceError):
    """Raised when the target user does not exist."""
    pass


class LedgerWriteError(PointsServiceError):
    """Raised when the store rejects a write; the award did not happen."""
    pass


class PointsService:
    """
    Puntenregister schrijver.

    Volgorde bij een toekenning:
    1. Bestaat er al een regel voor (user, description)? -> 0 punten
    2. Anders invoegen
    3. Pas na succes mag de aanroeper een sectie als voltooid markeren

    De unieke index vangt de race op waarbij twee gelijktijdige requests
    allebei stap 1 passeren: de tweede insert faalt met DuplicateKeyError
    en telt dan ook als 0 punten.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.points_repo = PointsRepository(db)
        self.user_repo = UserRepository(db)

    async def award_points(
        self,
        user_id: str,
        description: str,
        points: int,
        category: PointsCategory,
        reason: Optional[str] = None,
        granted_by: Optional[str] = None
    ) -> int:
        """
        Ken punten toe, hooguit één keer per description.

        Returns:
            Aantal toegekende punten (0 als het al eerder was toegekend)
        """
        try:
            existing = await self.points_repo.find_entry(user_id, description)
            if existing:
                return 0

            await self.points_repo.insert(LedgerEntry(
                user_id=user_id,
                category=category,
                description=description,
                points=points,
                reason=reason,
                granted_by=granted_by,
                created_at=datetime.now(timezone.utc)
            ))
        except DuplicateKeyError:
            # Gelijktijdige toekenning won de race
            return 0
        except PyMongoError as e:
            logger.error(f"❌ Could not award '{description}' to {user_id}: {e}")
            raise LedgerWriteError("Punten konden niet worden opgeslagen") from e

        logger.info(f"✅ Awarded {points} points to {user_id} for '{description}'")
        return points

    async def set_points(
        self,
        user_id: str,
        description: str,
        points: int,
        category: PointsCategory,
        reason: Optional[str] = None
    ) -> LedgerEntry:
        """
        Overschrijf de regel voor (user, description) met een nieuwe waarde.

        Voor herberekende scores (voorspellingen): de oude regel wordt
        vervangen, er komt nooit een tweede bij.
        """
        try:
            return await self.points_repo.upsert(user_id, description, points, category, reason)
        except PyMongoError as e:
            logger.error(f"❌ Could not set '{description}' for {user_id}: {e}")
            raise LedgerWriteError("Punten konden niet worden opgeslagen") from e

    async def adjust_points(
        self,
        user_id: str,
        points: int,
        reason: str,
        admin: User
    ) -> dict:
        """
        Handmatige correctie door een admin (positief of negatief).

        Wordt altijd toegevoegd: de description is per aanroep uniek.
        """
        if isinstance(points, bool) or not isinstance(points, int):
            raise InvalidAdjustmentError("INVALID_POINTS", "Ongeldig aantal punten. Moet een nummer zijn")

        if points == 0:
            raise InvalidAdjustmentError("ZERO_POINTS", "Aantal punten mag niet 0 zijn")

        if not reason or not reason.strip():
            raise InvalidAdjustmentError("REASON_REQUIRED", "Reden voor puntenaanpassing is verplicht")

        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise UserNotFoundError("Gebruiker niet gevonden")

        previous_total = await self.points_repo.get_user_total(user_id)
        new_total = previous_total + points
        if new_total < 0:
            raise InvalidAdjustmentError(
                "NEGATIVE_TOTAL",
                f"Puntenaanpassing zou resulteren in negatief totaal ({new_total}). "
                f"Huidige punten: {previous_total}"
            )

        awarded = await self.award_points(
            user_id,
            f"manual:{uuid.uuid4()}",
            points,
            PointsCategory.MANUAL,
            reason=f"{reason.strip()} (door {admin.email})",
            granted_by=admin.id
        )

        return {
            "user_id": user.id,
            "name": user.name,
            "previous_total": previous_total,
            "new_total": previous_total + awarded,
            "points_awarded": awarded,
        }

    async def get_entry(self, user_id: str, description: str) -> Optional[LedgerEntry]:
        return await self.points_repo.find_entry(user_id, description)

    async def get_user_total(self, user_id: str) -> int:
        return await self.points_repo.get_user_total(user_id)

    async def get_user_entries(self, user_id: str) -> list[LedgerEntry]:
        return await self.points_repo.get_user_entries(user_id)
