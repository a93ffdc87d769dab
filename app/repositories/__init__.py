from .user_repository import UserRepository
from .registration_repository import RegistrationRepository
from .points_repository import PointsRepository
from .prediction_repository import PredictionRepository
from .evaluation_repository import EvaluationRepository

__all__ = [
    "UserRepository",
    "RegistrationRepository",
    "PointsRepository",
    "PredictionRepository",
    "EvaluationRepository",
]
