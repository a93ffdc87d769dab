"""
LeaderboardService - Calculates leaderboard data on the fly from the points ledger.

Nothing is stored: every call scans the ledger, groups it per user and sorts.
The service keeps no state between calls, so any number of polling clients
can hit it at the same time. The live variant needs the previous ranks; the
caller keeps those between polls and passes them in.
"""

import math
from datetime import datetime, timezone
from typing import Iterable, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.leaderboard import (
    DistributionBucket,
    LeaderboardEntry,
    LeaderboardStats,
    LiveLeaderboardStats,
)
from app.models.points import LedgerEntry, PointsCategory
from app.models.prediction import PREDICTION_FIELDS
from app.models.user import RegistrationStatus, User
from app.repositories.points_repository import PointsRepository
from app.repositories.prediction_repository import PredictionRepository
from app.repositories.registration_repository import RegistrationRepository
from app.repositories.user_repository import UserRepository
from app.services.prediction_service import (
    RESULTS_DESCRIPTION,
    count_results_entered,
    score_predictions,
)

EXCLUDED_STATUSES = (RegistrationStatus.REJECTED, RegistrationStatus.CANCELLED)

# (label, min, max) - max None means open ended; anything below 51 lands in the first bucket
POINTS_RANGES = (
    ("0-50", None, 50),
    ("51-100", 51, 100),
    ("101-150", 101, 150),
    ("151-200", 151, 200),
    ("201+", 201, None),
)

AGE_RANGES = (
    ("20-29", 20, 29),
    ("30-39", 30, 39),
    ("40-49", 40, 49),
    ("50-59", 50, 59),
    ("60+", 60, 100),
)

CATEGORY_FIELDS = {
    PointsCategory.REGISTRATION.value: "registration_points",
    PointsCategory.PREDICTION.value: "prediction_points",
    PointsCategory.QUIZ.value: "quiz_points",
    PointsCategory.GAME.value: "game_points",
    PointsCategory.BONUS.value: "bonus_points",
    PointsCategory.MANUAL.value: "manual_points",
}


# ============================================
# Pure helpers
# ============================================

def is_ranked(user: User) -> bool:
    return user.is_active and user.registration_status not in EXCLUDED_STATUSES


def aggregate_points(
    users: Iterable[User],
    ledger: Iterable[LedgerEntry],
    skip_descriptions: Iterable[str] = ()
) -> list[LeaderboardEntry]:
    """
    Sum ledger rows per user, overall and per category.

    Users without rows get an entry with 0 points. Rows for users that are
    not ranked (unknown, inactive, rejected, cancelled) are ignored.
    """
    skip = set(skip_descriptions)
    entries = {
        user.id: LeaderboardEntry(user_id=user.id, name=user.name)
        for user in users
        if is_ranked(user)
    }

    for row in ledger:
        entry = entries.get(row.user_id)
        if entry is None or row.description in skip:
            continue

        field = CATEGORY_FIELDS[row.category]
        setattr(entry, field, getattr(entry, field) + row.points)
        entry.total_points += row.points

        if entry.last_points_at is None or row.created_at > entry.last_points_at:
            entry.last_points_at = row.created_at

    return list(entries.values())


def _sort_key(entry: LeaderboardEntry):
    # Tiebreak: whoever reached the total first, then user id
    has_no_points_yet = entry.last_points_at is None
    return (
        -entry.total_points,
        has_no_points_yet,
        entry.last_points_at if not has_no_points_yet else 0,
        entry.user_id,
    )


def rank_entries(entries: list[LeaderboardEntry]) -> list[LeaderboardEntry]:
    """Sort descending by total and number 1..n (no shared ranks)."""
    ranked = sorted(entries, key=_sort_key)
    for rank, entry in enumerate(ranked, start=1):
        entry.rank = rank
    return ranked


def apply_previous_ranks(
    entries: list[LeaderboardEntry],
    previous_ranks: dict[str, int]
) -> list[LeaderboardEntry]:
    """
    Fill previous_rank and rank_change (positive = moved up) from the
    snapshot of the previous poll.
    """
    for entry in entries:
        previous = previous_ranks.get(entry.user_id)
        entry.previous_rank = previous
        entry.rank_change = previous - entry.rank if previous is not None else None
    return entries


def points_distribution(entries: list[LeaderboardEntry]) -> list[DistributionBucket]:
    buckets = []
    for label, low, high in POINTS_RANGES:
        count = sum(
            1 for e in entries
            if (low is None or e.total_points >= low) and (high is None or e.total_points <= high)
        )
        buckets.append(DistributionBucket(range=label, count=count))
    return buckets


def age_distribution(birth_years: Iterable[Optional[int]], current_year: int) -> list[DistributionBucket]:
    ages = [current_year - year for year in birth_years if year]
    return [
        DistributionBucket(range=label, count=sum(1 for age in ages if low <= age <= high))
        for label, low, high in AGE_RANGES
    ]


# ============================================
# Service
# ============================================

class LeaderboardService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.user_repo = UserRepository(db)
        self.points_repo = PointsRepository(db)
        self.registration_repo = RegistrationRepository(db)
        self.prediction_repo = PredictionRepository(db)

    async def build_leaderboard(self) -> list[LeaderboardEntry]:
        users = await self.user_repo.list_all()
        ledger = await self.points_repo.list_all()
        return rank_entries(aggregate_points(users, ledger))

    async def get_stats(
        self,
        entries: list[LeaderboardEntry],
        current_year: Optional[int] = None
    ) -> LeaderboardStats:
        current_year = current_year or datetime.now(timezone.utc).year

        ranked_ids = {e.user_id for e in entries}
        registrations = await self.registration_repo.list_all()
        birth_years = [r.birth_year for r in registrations if r.user_id in ranked_ids]

        total_points = sum(e.total_points for e in entries)
        average = math.floor(total_points / len(entries) + 0.5) if entries else 0

        return LeaderboardStats(
            total_participants=len(entries),
            total_points=total_points,
            average_points=average,
            points_distribution=points_distribution(entries),
            age_distribution=age_distribution(birth_years, current_year),
        )

    async def build_live_leaderboard(
        self,
        previous_ranks: Optional[dict[str, int]] = None
    ) -> tuple[list[LeaderboardEntry], LiveLeaderboardStats]:
        """
        Leaderboard with prediction points scored live from the current outcomes.

        Stored prediction_results rows are left out, otherwise they would be
        counted twice next to the live score.
        """
        users = await self.user_repo.list_all()
        ledger = await self.points_repo.list_all()
        entries = aggregate_points(users, ledger, skip_descriptions=[RESULTS_DESCRIPTION])

        snapshot = await self.prediction_repo.get_snapshot()
        actual_results = snapshot.results if snapshot else {}
        results_entered = count_results_entered(actual_results)

        if results_entered > 0:
            registrations = await self.registration_repo.list_with_predictions()
            predictions_by_user = {r.user_id: r.predictions for r in registrations}

            for entry in entries:
                predictions = predictions_by_user.get(entry.user_id)
                if not predictions:
                    continue
                score = score_predictions(predictions, actual_results)
                entry.prediction_points += score.total
                entry.total_points += score.total
                entry.breakdown = score.breakdown

        ranked = apply_previous_ranks(rank_entries(entries), previous_ranks or {})

        stats = LiveLeaderboardStats(
            results_entered=results_entered,
            total_fields=len(PREDICTION_FIELDS),
            last_update=(snapshot.updated_at if snapshot and snapshot.updated_at else datetime.now(timezone.utc)),
        )
        return ranked, stats

    async def get_user_position(self, user_id: str) -> dict:
        """
        Points and rank of one user.

        A user without a leaderboard entry gets the rank after the last one.
        """
        entries = await self.build_leaderboard()
        for entry in entries:
            if entry.user_id == user_id:
                return {"points": entry.total_points, "rank": entry.rank, "entry": entry}
        return {"points": 0, "rank": len(entries) + 1, "entry": None}
