from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class LeaderboardEntry(BaseModel):
    """Regel in het klassement (berekend per request, nooit opgeslagen)"""

    rank: int = 0
    user_id: str
    name: str

    total_points: int = 0
    registration_points: int = 0
    prediction_points: int = 0
    quiz_points: int = 0
    game_points: int = 0
    bonus_points: int = 0
    manual_points: int = 0

    # Tiebreak: moment waarop de laatste punten binnenkwamen
    last_points_at: Optional[datetime] = None

    # Alleen in de live variant
    previous_rank: Optional[int] = None
    rank_change: Optional[int] = None
    breakdown: Optional[dict[str, int]] = None

    class Config:
        populate_by_name = True


class DistributionBucket(BaseModel):
    range: str
    count: int


class LeaderboardStats(BaseModel):
    total_participants: int
    total_points: int
    average_points: int
    points_distribution: list[DistributionBucket]
    age_distribution: list[DistributionBucket]


class LiveLeaderboardStats(BaseModel):
    results_entered: int
    total_fields: int
    last_update: datetime
