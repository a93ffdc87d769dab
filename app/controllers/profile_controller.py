"""
Controller voor het profiel - secties opslaan en voortgang bekijken
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, HTTPException, status
from pydantic import BaseModel

from app.core.dependencies import CurrentUser, Database
from app.models.registration import Registration
from app.services.profile_service import (
    ProfileService,
    InvalidSectionError,
    InvalidProfileDataError,
    ProfileNotFoundError,
)


router = APIRouter(prefix="/profile", tags=["profile"])


class CompletionResponse(BaseModel):
    completed_sections: list[str]
    points: int
    total_points: int
    percentage: int


class ProfileResponse(BaseModel):
    registration: Optional[Registration] = None
    completion: CompletionResponse


class SaveSectionResponse(BaseModel):
    success: bool = True
    section: str
    completed: bool
    points_awarded: int
    completion: CompletionResponse


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(user: CurrentUser, db: Database):
    """
    Profiel van de ingelogde gebruiker, met voltooide secties en percentage.
    """
    profile_service = ProfileService(db)
    return await profile_service.get_profile(user.id)


@router.post("/sections/{section}", response_model=SaveSectionResponse)
async def save_section(
    section: str,
    user: CurrentUser,
    db: Database,
    data: dict[str, Any] = Body(...)
):
    """
    Sla één profielsectie op.

    Is de sectie compleet, dan worden de punten toegekend (één keer).
    Onvolledige gegevens worden wel bewaard maar leveren niets op.
    """
    profile_service = ProfileService(db)

    try:
        result = await profile_service.save_section(user.id, section, data)
    except InvalidSectionError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "INVALID_SECTION", "message": str(e)}
        )
    except InvalidProfileDataError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "VALIDATION_ERROR", "message": str(e)}
        )
    except ProfileNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "NOT_FOUND", "message": str(e)}
        )

    return SaveSectionResponse(**result)
