"""
ProfileService - profile sections, their validation and completion points.

Sections are independently completable groups of profile questions, each
worth a fixed number of points. Completing a section records the ledger
grant first and only then sets the completion flag, so a flag never exists
without its points.
"""

import logging
import re
import uuid
from typing import Any, Callable

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError

from app.models.points import PointsCategory
from app.models.registration import Registration, SKILL_CATEGORIES
from app.models.user import User, UserCreate
from app.repositories.registration_repository import RegistrationRepository
from app.repositories.user_repository import UserRepository
from app.services.points_service import PointsService

logger = logging.getLogger(__name__)

# Ordered; must match the point values the frontend shows
SECTION_POINTS: dict[str, int] = {
    "basic": 10,
    "personal": 50,
    "skills": 40,
    "music": 20,
    "jkvHistorie": 30,
    "borrelStats": 30,
    "quiz": 80,
}
TOTAL_PROFILE_POINTS = sum(SECTION_POINTS.values())  # 260

MIN_QUIZ_ANSWERS = 3

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ProfileServiceError(Exception):
    """Base exception for profile service errors."""
    pass


class InvalidSectionError(ProfileServiceError):
    """Raised for an unknown or non-savable section name."""
    pass


class ProfileNotFoundError(ProfileServiceError):
    """Raised when the user does not exist."""
    pass


class InvalidProfileDataError(ProfileServiceError):
    """Raised when submitted section data has the wrong shape."""
    pass


class EmailAlreadyRegisteredError(ProfileServiceError):
    """Raised when registering an e-mail address twice."""
    pass


# ============================================
# Section validators
# ============================================

def _personal_complete(reg: Registration) -> bool:
    return reg.birth_year is not None


def _skills_complete(reg: Registration) -> bool:
    return all(reg.skills.get(category) for category in SKILL_CATEGORIES)


def _music_complete(reg: Registration) -> bool:
    return bool(reg.music_decade and reg.music_genre)


def _jkv_complete(reg: Registration) -> bool:
    return reg.jkv_join_year is not None and reg.jkv_exit_year is not None


def _borrel_complete(reg: Registration) -> bool:
    # Sliders always carry a value
    return True


def _quiz_complete(reg: Registration) -> bool:
    answered = [v for v in reg.quiz_answers.values() if v not in (None, "")]
    return len(answered) >= MIN_QUIZ_ANSWERS


SECTION_VALIDATORS: dict[str, Callable[[Registration], bool]] = {
    "personal": _personal_complete,
    "skills": _skills_complete,
    "music": _music_complete,
    "jkvHistorie": _jkv_complete,
    "borrelStats": _borrel_complete,
    "quiz": _quiz_complete,
}

# Request field (camelCase, as the frontend sends it) -> registration field
SECTION_FIELDS: dict[str, dict[str, str]] = {
    "personal": {
        "birthYear": "birth_year",
        "hasPartner": "has_partner",
        "partnerName": "partner_name",
        "dietaryRequirements": "dietary_requirements",
    },
    "skills": {
        "skills": "skills",
        "additionalSkills": "additional_skills",
    },
    "music": {
        "musicDecade": "music_decade",
        "musicGenre": "music_genre",
    },
    "jkvHistorie": {
        "jkvJoinYear": "jkv_join_year",
        "jkvExitYear": "jkv_exit_year",
        "bovenkamerJoinYear": "bovenkamer_join_year",
    },
    "borrelStats": {
        "borrelCount2025": "borrel_count_2025",
        "borrelPlanning2026": "borrel_planning_2026",
    },
    "quiz": {
        "quizAnswers": "quiz_answers",
    },
}


def section_description(section: str) -> str:
    """Ledger description (dedup key) for a section."""
    return f"profile_{section}"


class SectionTracker:
    """
    Completion flags per (user, section) plus the fixed point table.

    The tracker does not validate; callers check SECTION_VALIDATORS first.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.registration_repo = RegistrationRepository(db)
        self.points_service = PointsService(db)

    async def mark_section_complete(self, user_id: str, section: str) -> None:
        if section not in SECTION_POINTS:
            raise InvalidSectionError(f"Onbekende sectie: {section}")
        await self.registration_repo.set_section_complete(user_id, section)

    async def complete_section(self, user_id: str, section: str) -> int:
        """
        Award the section's points, then set the flag.

        If the award raises, the flag stays unset. A repeated call awards 0
        and leaves the flag set.
        """
        if section not in SECTION_POINTS:
            raise InvalidSectionError(f"Onbekende sectie: {section}")

        awarded = await self.points_service.award_points(
            user_id,
            section_description(section),
            SECTION_POINTS[section],
            PointsCategory.REGISTRATION,
            reason=f"Profielsectie {section} voltooid"
        )
        await self.mark_section_complete(user_id, section)
        return awarded

    async def get_completion(self, user_id: str) -> dict:
        registration = await self.registration_repo.get_by_user(user_id)
        flags = registration.completed_sections if registration else {}

        completed = [section for section in SECTION_POINTS if flags.get(section)]
        points = sum(SECTION_POINTS[section] for section in completed)

        return {
            "completed_sections": completed,
            "points": points,
            "total_points": TOTAL_PROFILE_POINTS,
            "percentage": round(100 * points / TOTAL_PROFILE_POINTS),
        }


class ProfileService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.user_repo = UserRepository(db)
        self.registration_repo = RegistrationRepository(db)
        self.tracker = SectionTracker(db)

    async def save_section(self, user_id: str, section: str, data: dict[str, Any]) -> dict:
        """
        Save one profile section and award its points when it is complete.

        Incomplete data is still stored as a draft; it just earns nothing.
        """
        if section not in SECTION_FIELDS:
            raise InvalidSectionError(f"Ongeldige sectie: {section}")

        if not await self.user_repo.exists(user_id):
            raise ProfileNotFoundError("Gebruiker niet gevonden")

        mapping = SECTION_FIELDS[section]
        fields = {column: data.get(key) for key, column in mapping.items() if key in data}

        try:
            checked = Registration.model_validate({"user_id": user_id, **fields})
        except ValidationError as e:
            raise InvalidProfileDataError(f"Ongeldige gegevens voor sectie {section}") from e
        fields = {column: getattr(checked, column) for column in fields}

        registration = await self.registration_repo.upsert_fields(user_id, fields)

        completed = SECTION_VALIDATORS[section](registration)
        points_awarded = 0
        if completed:
            points_awarded = await self.tracker.complete_section(user_id, section)

        return {
            "section": section,
            "completed": completed,
            "points_awarded": points_awarded,
            "completion": await self.tracker.get_completion(user_id),
        }

    async def get_profile(self, user_id: str) -> dict:
        registration = await self.registration_repo.get_by_user(user_id)
        return {
            "registration": registration,
            "completion": await self.tracker.get_completion(user_id),
        }

    async def register_user(self, name: str, email: str) -> tuple[User, int]:
        """
        Minimal registration: create the user and award the basic section.

        Returns: (user, points_awarded)
        """
        name = (name or "").strip()
        email = (email or "").strip().lower()

        if not name:
            raise InvalidProfileDataError("Naam is verplicht")
        if not EMAIL_PATTERN.match(email):
            raise InvalidProfileDataError("Ongeldig e-mailadres")

        if await self.user_repo.get_by_email(email):
            raise EmailAlreadyRegisteredError("Dit e-mailadres is al geregistreerd")

        try:
            user = await self.user_repo.create(UserCreate(id=str(uuid.uuid4()), email=email, name=name))
        except DuplicateKeyError as e:
            raise EmailAlreadyRegisteredError("Dit e-mailadres is al geregistreerd") from e

        points_awarded = await self.tracker.complete_section(user.id, "basic")
        logger.info(f"✅ Registered {email} ({user.id})")
        return user, points_awarded
