"""
Admin controller - Endpoints alleen voor beheerders
"""

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from app.core.dependencies import CurrentAdmin, Database
from app.models.evaluation import UserEvaluation
from app.models.prediction import PredictionResultSnapshot, PredictionValues
from app.models.user import RegistrationStatus, UserResponse, UserRole
from app.repositories.user_repository import UserRepository
from app.services.evaluation_service import EvaluationService, EvaluationNotFoundError
from app.services.points_service import (
    PointsService,
    InvalidAdjustmentError,
    UserNotFoundError,
)
from app.services.prediction_service import PredictionService, NoResultsError


router = APIRouter(prefix="/admin", tags=["admin"])


# ============================================
# REQUEST SCHEMAS
# ============================================

class AdjustPointsRequest(BaseModel):
    """Handmatige puntencorrectie; de service valideert de waarden"""
    points: Any = None
    reason: Optional[str] = None


class UpdateRoleRequest(BaseModel):
    role: UserRole


class UpdateStatusRequest(BaseModel):
    registration_status: RegistrationStatus


def _not_found(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "NOT_FOUND", "message": message}
    )


def _no_results(e: NoResultsError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "NO_RESULTS", "message": str(e)}
    )


# ============================================
# PREDICTION RESULTS ENDPOINTS
# ============================================

@router.get("/predictions/results", response_model=PredictionResultSnapshot)
async def get_prediction_results(admin: CurrentAdmin, db: Database):
    """
    Huidige werkelijke uitkomsten (leeg als er nog niets is ingevuld).
    """
    return await PredictionService(db).get_results()


@router.put("/predictions/results", response_model=PredictionResultSnapshot)
async def save_prediction_results(
    values: PredictionValues,
    admin: CurrentAdmin,
    db: Database
):
    """
    Sla de werkelijke uitkomsten op (overschrijft de vorige versie).

    Vanaf het eerste ingevulde veld zijn de voorspellingen gesloten.
    """
    return await PredictionService(db).save_results(values, admin.id)


@router.post("/predictions/calculate")
async def calculate_prediction_points(admin: CurrentAdmin, db: Database):
    """
    Bereken de voorspellingspunten van iedereen en schrijf ze in het register.

    Mag vaker worden aangeroepen: de vorige uitkomst wordt vervangen.
    """
    try:
        result = await PredictionService(db).calculate_and_award()
    except NoResultsError as e:
        raise _no_results(e)

    return {
        "success": True,
        "message": f"Punten berekend voor {result['users_processed']} deelnemers",
        **result
    }


@router.post("/predictions/evaluate")
async def evaluate_predictions(admin: CurrentAdmin, db: Database):
    """
    Genereer per deelnemer een evaluatie van de voorspelkwaliteiten.
    """
    try:
        result = await EvaluationService(db).evaluate_all()
    except NoResultsError as e:
        raise _no_results(e)

    return {
        "success": True,
        "message": f"{result['generated']} evaluaties gegenereerd",
        **result
    }


@router.get("/predictions/evaluate/{user_id}", response_model=UserEvaluation)
async def get_prediction_evaluation(user_id: str, admin: CurrentAdmin, db: Database):
    try:
        return await EvaluationService(db).get_evaluation(user_id)
    except EvaluationNotFoundError as e:
        raise _not_found(str(e))


# ============================================
# USER ENDPOINTS
# ============================================

@router.post("/users/{user_id}/points")
async def adjust_user_points(
    user_id: str,
    request: AdjustPointsRequest,
    admin: CurrentAdmin,
    db: Database
):
    """
    Ken handmatig punten toe of trek ze af.

    Het totaal van de gebruiker mag niet onder 0 komen.
    """
    points_service = PointsService(db)

    try:
        result = await points_service.adjust_points(user_id, request.points, request.reason, admin)
    except InvalidAdjustmentError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": e.code, "message": str(e)}
        )
    except UserNotFoundError as e:
        raise _not_found(str(e))

    action = "toegekend" if result["points_awarded"] > 0 else "afgetrokken"
    return {
        "success": True,
        "message": f"{abs(result['points_awarded'])} punten {action} aan {result['name']}",
        "pointsAwarded": result["points_awarded"],
        "previousTotal": result["previous_total"],
        "newTotal": result["new_total"],
    }


@router.put("/users/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: str,
    request: UpdateRoleRequest,
    admin: CurrentAdmin,
    db: Database
):
    user = await UserRepository(db).update_role(user_id, request.role)
    if not user:
        raise _not_found("Gebruiker niet gevonden")
    return UserResponse(**user.model_dump())


@router.put("/users/{user_id}/status", response_model=UserResponse)
async def update_user_status(
    user_id: str,
    request: UpdateStatusRequest,
    admin: CurrentAdmin,
    db: Database
):
    """
    Wijzig de registratiestatus. Afgewezen en geannuleerde deelnemers
    verdwijnen uit het klassement; hun punten blijven in het register.
    """
    user = await UserRepository(db).update_status(user_id, request.registration_status)
    if not user:
        raise _not_found("Gebruiker niet gevonden")
    return UserResponse(**user.model_dump())
