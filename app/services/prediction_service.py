"""
PredictionService - scoring of predictions against the actual outcomes.

Points per field (max 50):
- numeric : exact = 50, within 10% = 25, within 25% = 10
- person / boolean : exact match = 50
- time    : slider index, exact = 50, 1 step off = 25, 2 steps off = 10

A field is skipped (no breakdown key) when either side is missing.
"""

import logging
from typing import Any, Iterable, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.points import PointsCategory
from app.models.prediction import (
    PredictionField,
    PredictionFieldType,
    PredictionResultSnapshot,
    PredictionValues,
    ScoreResult,
    PREDICTION_FIELDS,
    POINTS_PER_FIELD,
)
from app.repositories.prediction_repository import PredictionRepository
from app.repositories.registration_repository import RegistrationRepository
from app.repositories.user_repository import UserRepository
from app.services.points_service import PointsService

logger = logging.getLogger(__name__)

SUBMISSION_DESCRIPTION = "predictions_submitted"
SUBMISSION_POINTS = 5
RESULTS_DESCRIPTION = "prediction_results"


class PredictionServiceError(Exception):
    """Base exception for prediction service errors."""
    pass


class PredictionsLockedError(PredictionServiceError):
    """Raised when predictions are submitted after results were entered."""
    pass


class NoResultsError(PredictionServiceError):
    """Raised when scoring is requested before any results exist."""
    pass


class PredictionUserNotFoundError(PredictionServiceError):
    """Raised when the user does not exist."""
    pass


# ============================================
# 🎯 Scoring (pure)
# ============================================

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _normalize(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip()
    return value


def _score_numeric(predicted: float, actual: float) -> int:
    diff = abs(predicted - actual)
    if diff == 0:
        return POINTS_PER_FIELD

    # percentDiff <= X  <=>  diff * 100 <= X * |actual|; avoids float noise at the edges
    # actual == 0 with diff != 0 counts as 100% off
    if actual == 0:
        return 0
    if diff * 100 <= 10 * abs(actual):
        return 25
    if diff * 100 <= 25 * abs(actual):
        return 10
    return 0


def _score_time(predicted: int, actual: int) -> int:
    diff = abs(predicted - actual)
    if diff == 0:
        return POINTS_PER_FIELD
    if diff <= 1:
        return 25
    if diff <= 2:
        return 10
    return 0


def _score_exact(predicted: Any, actual: Any) -> int:
    predicted, actual = _normalize(predicted), _normalize(actual)
    # True == 1 in Python; a bool only matches a bool
    if isinstance(predicted, bool) != isinstance(actual, bool):
        return 0
    return POINTS_PER_FIELD if predicted == actual else 0


def score_field(field: PredictionField, predicted: Any, actual: Any) -> Optional[int]:
    """
    Points for one field, or None when the field cannot be scored.
    """
    if predicted is None or actual is None:
        return None

    if field.type in (PredictionFieldType.NUMERIC, PredictionFieldType.TIME):
        if not (_is_number(predicted) and _is_number(actual)):
            return None
        if field.type == PredictionFieldType.NUMERIC:
            return _score_numeric(predicted, actual)
        return _score_time(predicted, actual)

    if field.type in (PredictionFieldType.PERSON, PredictionFieldType.BOOLEAN):
        return _score_exact(predicted, actual)

    raise ValueError(f"Unknown prediction field type: {field.type}")


def score_predictions(
    predictions: dict[str, Any],
    actual_results: dict[str, Any],
    fields: Iterable[PredictionField] = PREDICTION_FIELDS
) -> ScoreResult:
    """
    Compare a user's predictions with the actual outcomes.

    Returns total plus per-field breakdown; skipped fields are absent from
    the breakdown, so "no data" stays distinguishable from a wrong answer.
    """
    total = 0
    breakdown: dict[str, int] = {}

    for field in fields:
        points = score_field(field, predictions.get(field.key), actual_results.get(field.key))
        if points is None:
            continue
        breakdown[field.key] = points
        total += points

    return ScoreResult(total=total, breakdown=breakdown)


def count_results_entered(actual_results: dict[str, Any]) -> int:
    return sum(
        1 for field in PREDICTION_FIELDS
        if actual_results.get(field.key) is not None
    )


# ============================================
# Service
# ============================================

class PredictionService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.prediction_repo = PredictionRepository(db)
        self.registration_repo = RegistrationRepository(db)
        self.user_repo = UserRepository(db)
        self.points_service = PointsService(db)

    def get_fields(self) -> tuple[PredictionField, ...]:
        return PREDICTION_FIELDS

    async def get_results(self) -> PredictionResultSnapshot:
        snapshot = await self.prediction_repo.get_snapshot()
        return snapshot or PredictionResultSnapshot()

    async def save_results(self, values: PredictionValues, admin_id: str) -> PredictionResultSnapshot:
        """Overwrite the outcomes snapshot (last write wins)."""
        results = values.model_dump(exclude_none=True)
        snapshot = await self.prediction_repo.save_snapshot(results, admin_id)
        logger.info(f"✅ Prediction results saved by {admin_id}: {len(results)} fields")
        return snapshot

    async def submit_predictions(self, user_id: str, values: PredictionValues) -> int:
        """
        Store the user's predictions and award the one-time submission points.

        Returns the number of points awarded (0 on resubmission).
        """
        if not await self.user_repo.exists(user_id):
            raise PredictionUserNotFoundError("Gebruiker niet gevonden")

        snapshot = await self.prediction_repo.get_snapshot()
        if snapshot and count_results_entered(snapshot.results) > 0:
            raise PredictionsLockedError("Voorspellingen zijn gesloten, de uitkomsten zijn al ingevuld")

        await self.registration_repo.set_predictions(user_id, values.model_dump(exclude_none=True))

        return await self.points_service.award_points(
            user_id,
            SUBMISSION_DESCRIPTION,
            SUBMISSION_POINTS,
            PointsCategory.PREDICTION,
            reason="Voorspellingen ingediend"
        )

    async def get_user_predictions(self, user_id: str) -> dict:
        registration = await self.registration_repo.get_by_user(user_id)
        predictions = registration.predictions if registration else {}

        snapshot = await self.get_results()
        score = None
        if predictions and count_results_entered(snapshot.results) > 0:
            score = score_predictions(predictions, snapshot.results)

        return {"predictions": predictions, "score": score}

    async def calculate_and_award(self) -> dict:
        """
        Score every submitted prediction and write the result to the ledger.

        The prediction_results row is replaced on every run, so running this
        again after correcting an outcome never double counts.
        """
        snapshot = await self.prediction_repo.get_snapshot()
        if not snapshot or not snapshot.results:
            raise NoResultsError("Geen uitkomsten gevonden. Vul eerst de uitkomsten in.")

        registrations = await self.registration_repo.list_with_predictions()

        users_processed = 0
        total_points_awarded = 0

        for registration in registrations:
            score = score_predictions(registration.predictions, snapshot.results)
            if score.total <= 0:
                # A corrected outcome can take earlier points away again
                if await self.points_service.get_entry(registration.user_id, RESULTS_DESCRIPTION):
                    await self.points_service.set_points(
                        registration.user_id,
                        RESULTS_DESCRIPTION,
                        0,
                        PointsCategory.PREDICTION,
                        reason=f"Voorspellingen punten: {score.breakdown}"
                    )
                continue

            await self.points_service.set_points(
                registration.user_id,
                RESULTS_DESCRIPTION,
                score.total,
                PointsCategory.PREDICTION,
                reason=f"Voorspellingen punten: {score.breakdown}"
            )

            users_processed += 1
            total_points_awarded += score.total

        logger.info(
            f"✅ Prediction points calculated: {users_processed} users, {total_points_awarded} points"
        )
        return {
            "users_processed": users_processed,
            "total_points_awarded": total_points_awarded,
        }
