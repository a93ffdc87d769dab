"""
Controller voor het klassement - Endpoints van de ranglijst

Het klassement wordt bij elke request opnieuw berekend uit het
puntenregister. Er wordt niets gecachet.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel

from app.core.dependencies import Database, CurrentUser
from app.models.leaderboard import LeaderboardEntry, LeaderboardStats, LiveLeaderboardStats
from app.services.leaderboard_service import LeaderboardService


router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])

TOP_SIZE = 10


class LeaderboardResponse(BaseModel):
    """Top van het klassement."""
    leaderboard: list[LeaderboardEntry]
    total_participants: int


class FullLeaderboardResponse(BaseModel):
    """Volledig klassement met statistieken (dashboard)."""
    leaderboard: list[LeaderboardEntry]
    stats: LeaderboardStats


class LiveLeaderboardResponse(BaseModel):
    """Live klassement tijdens het invullen van de uitkomsten."""
    leaderboard: list[LeaderboardEntry]
    stats: LiveLeaderboardStats


class MyPositionResponse(BaseModel):
    points: int
    rank: int
    entry: Optional[LeaderboardEntry] = None


def parse_previous_ranks(values: list[str]) -> dict[str, int]:
    """
    Zet `user_id:rank` paren om naar een dict.

    Ongeldige paren geven een 400.
    """
    previous = {}
    for value in values:
        user_id, _, rank = value.rpartition(":")
        if not user_id or not (rank.isascii() and rank.isdecimal()):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"error": "VALIDATION_ERROR", "message": f"Ongeldige vorige positie: {value}"}
            )
        previous[user_id] = int(rank)
    return previous


@router.get("", response_model=LeaderboardResponse)
async def get_leaderboard(db: Database):
    """
    Top 10 van het klassement.
    """
    leaderboard_service = LeaderboardService(db)
    entries = await leaderboard_service.build_leaderboard()

    return LeaderboardResponse(
        leaderboard=entries[:TOP_SIZE],
        total_participants=len(entries)
    )


@router.get("/full", response_model=FullLeaderboardResponse)
async def get_full_leaderboard(db: Database):
    """
    Volledig klassement met puntenverdeling en leeftijdsverdeling.
    """
    leaderboard_service = LeaderboardService(db)
    entries = await leaderboard_service.build_leaderboard()
    stats = await leaderboard_service.get_stats(entries)

    return FullLeaderboardResponse(leaderboard=entries, stats=stats)


@router.get("/live", response_model=LiveLeaderboardResponse)
async def get_live_leaderboard(
    db: Database,
    previous: list[str] = Query(default=[], description="Vorige posities als user_id:rank")
):
    """
    Live klassement met voorspellingspunten berekend uit de huidige uitkomsten.

    De client stuurt de posities van de vorige poll mee; daaruit volgt
    rank_change (positief = gestegen).
    """
    previous_ranks = parse_previous_ranks(previous)

    leaderboard_service = LeaderboardService(db)
    entries, stats = await leaderboard_service.build_live_leaderboard(previous_ranks)

    return LiveLeaderboardResponse(leaderboard=entries, stats=stats)


@router.get("/me", response_model=MyPositionResponse)
async def get_my_leaderboard_position(user: CurrentUser, db: Database):
    """
    Positie van de ingelogde gebruiker.

    Wie (nog) niet in het klassement staat krijgt de plek na de laatste.
    """
    leaderboard_service = LeaderboardService(db)
    position = await leaderboard_service.get_user_position(user.id)
    return MyPositionResponse(**position)
