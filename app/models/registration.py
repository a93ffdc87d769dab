from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field


# Volgorde zoals in het profielformulier
SKILL_CATEGORIES = (
    "food_prep",
    "bbq_grill",
    "drinks",
    "entertainment",
    "atmosphere",
    "social",
    "cleanup",
    "documentation",
)


class Registration(BaseModel):
    """Profielantwoorden van een deelnemer (1-op-1 met User)"""

    user_id: str

    # Persoonlijk
    birth_year: Optional[int] = None
    has_partner: bool = False
    partner_name: Optional[str] = None
    dietary_requirements: Optional[str] = None

    # Vaardigheden
    skills: dict[str, str] = {}
    additional_skills: Optional[str] = None

    # Muziek
    music_decade: Optional[str] = None
    music_genre: Optional[str] = None

    # JKV historie
    jkv_join_year: Optional[int] = None
    jkv_exit_year: Optional[int] = None
    bovenkamer_join_year: Optional[int] = None

    # Borrel stats
    borrel_count_2025: int = 0
    borrel_planning_2026: int = 0

    quiz_answers: dict[str, Any] = {}

    predictions: dict[str, Any] = {}
    # Set by the assignment generator, which lives outside this service
    ai_assignment: Optional[dict] = None

    completed_sections: dict[str, bool] = Field(default_factory=dict)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        populate_by_name = True
