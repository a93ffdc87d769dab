"""
Health controller - controle of de service draait
"""

from fastapi import APIRouter
from pydantic import BaseModel

from app.database import Database


router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Antwoord van de statuscheck."""
    status: str
    database: str


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Statuscheck.

    Controleert of de API draait en of de database verbonden is.
    """
    db_status = "connected" if Database.db is not None else "disconnected"

    return HealthResponse(
        status="ok",
        database=db_status
    )
