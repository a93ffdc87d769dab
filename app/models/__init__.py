from .user import User, UserCreate, UserRole, RegistrationStatus
from .registration import Registration, SKILL_CATEGORIES
from .points import LedgerEntry, PointsCategory
from .prediction import (
    PredictionField,
    PredictionFieldType,
    PredictionValues,
    ScoreResult,
    PREDICTION_FIELDS,
    MAX_PREDICTION_POINTS,
)
from .leaderboard import LeaderboardEntry, LeaderboardStats
from .evaluation import Evaluation, UserEvaluation

__all__ = [
    "User",
    "UserCreate",
    "UserRole",
    "RegistrationStatus",
    "Registration",
    "SKILL_CATEGORIES",
    "LedgerEntry",
    "PointsCategory",
    "PredictionField",
    "PredictionFieldType",
    "PredictionValues",
    "ScoreResult",
    "PREDICTION_FIELDS",
    "MAX_PREDICTION_POINTS",
    "LeaderboardEntry",
    "LeaderboardStats",
    "Evaluation",
    "UserEvaluation",
]
