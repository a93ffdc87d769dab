"""
Controller voor registratie - aanmelden en de huidige gebruiker
"""

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from app.core.dependencies import Database, CurrentUser
from app.core.security import create_access_token
from app.services.profile_service import (
    ProfileService,
    InvalidProfileDataError,
    EmailAlreadyRegisteredError,
)
from app.models.user import UserResponse

router = APIRouter(prefix="/auth", tags=["auth"])


# Minimale registratie: naam + e-mail
class RegisterRequest(BaseModel):
    name: str
    email: str


# Antwoord met JWT
class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
    points_awarded: int


def _user_response(user) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        registration_status=user.registration_status,
        created_at=user.created_at
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    db: Database
):
    """
    Meldt een nieuwe deelnemer aan.

    Maakt de gebruiker aan, kent de punten voor de sectie `basic` toe
    en geeft een JWT terug.
    """
    profile_service = ProfileService(db)

    try:
        user, points_awarded = await profile_service.register_user(request.name, request.email)
    except InvalidProfileDataError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "VALIDATION_ERROR", "message": str(e)}
        )
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": "EMAIL_EXISTS", "message": str(e)}
        )

    token = create_access_token(user.id, user.email, user.role.value)

    return AuthResponse(
        access_token=token,
        user=_user_response(user),
        points_awarded=points_awarded
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user(user: CurrentUser):
    """
    Geeft de ingelogde gebruiker terug.

    Vereist een geldige JWT in de `Authorization` header.
    """
    return _user_response(user)
