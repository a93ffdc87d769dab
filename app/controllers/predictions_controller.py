"""
Controller voor voorspellingen - indienen en de eigen score bekijken
"""

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from app.core.dependencies import Database, CurrentUser
from app.models.prediction import PredictionField, PredictionValues, ScoreResult, MAX_PREDICTION_POINTS
from app.services.prediction_service import (
    PredictionService,
    PredictionsLockedError,
    PredictionUserNotFoundError,
)


router = APIRouter(prefix="/predictions", tags=["predictions"])


class SubmitPredictionsResponse(BaseModel):
    success: bool = True
    points_awarded: int


class MyPredictionsResponse(BaseModel):
    predictions: dict[str, Any]
    score: Optional[ScoreResult] = None
    max_points: int = MAX_PREDICTION_POINTS


@router.get("/fields", response_model=list[PredictionField])
async def get_prediction_fields(db: Database):
    """
    De twaalf voorspellingsvelden met label en type.
    """
    return list(PredictionService(db).get_fields())


@router.post("", response_model=SubmitPredictionsResponse)
async def submit_predictions(
    values: PredictionValues,
    user: CurrentUser,
    db: Database
):
    """
    Dien voorspellingen in (of werk ze bij).

    De eerste keer levert dit 5 punten op. Zodra de admin uitkomsten heeft
    ingevuld zijn de voorspellingen gesloten.
    """
    prediction_service = PredictionService(db)

    try:
        points_awarded = await prediction_service.submit_predictions(user.id, values)
    except PredictionsLockedError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "PREDICTIONS_LOCKED", "message": str(e)}
        )
    except PredictionUserNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "NOT_FOUND", "message": str(e)}
        )

    return SubmitPredictionsResponse(points_awarded=points_awarded)


@router.get("/me", response_model=MyPredictionsResponse)
async def get_my_predictions(user: CurrentUser, db: Database):
    """
    Eigen voorspellingen, met score zodra er uitkomsten zijn.
    """
    prediction_service = PredictionService(db)
    return await prediction_service.get_user_predictions(user.id)
