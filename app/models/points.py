from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel


class PointsCategory(str, Enum):
    REGISTRATION = "registration"
    PREDICTION = "prediction"
    QUIZ = "quiz"
    GAME = "game"
    BONUS = "bonus"
    MANUAL = "manual"


class LedgerEntry(BaseModel):
    """Regel in het puntenregister (append-only)"""

    user_id: str
    category: PointsCategory
    description: str  # deduplicatiesleutel per gebruiker
    points: int

    reason: Optional[str] = None
    granted_by: Optional[str] = None

    created_at: datetime

    class Config:
        populate_by_name = True
        use_enum_values = True
