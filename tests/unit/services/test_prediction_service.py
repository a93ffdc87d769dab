"""
Unit tests for prediction scoring and PredictionService
"""

import pytest

from app.models.prediction import (
    PredictionField,
    PredictionFieldType,
    PredictionValues,
    MAX_PREDICTION_POINTS,
)
from app.repositories.points_repository import PointsRepository
from app.repositories.registration_repository import RegistrationRepository
from app.services.prediction_service import (
    PredictionService,
    PredictionsLockedError,
    NoResultsError,
    PredictionUserNotFoundError,
    RESULTS_DESCRIPTION,
    SUBMISSION_DESCRIPTION,
    count_results_entered,
    score_field,
    score_predictions,
)
from tests.factories import insert_user


NUMERIC = PredictionField(key="wineBottles", label="Flessen wijn", type=PredictionFieldType.NUMERIC)
TIME = PredictionField(key="lastGuestTime", label="Laatste gast", type=PredictionFieldType.TIME)
BOOLEAN = PredictionField(key="somethingBurned", label="Iets aangebrand", type=PredictionFieldType.BOOLEAN)
PERSON = PredictionField(key="firstSleeper", label="Eerste slaper", type=PredictionFieldType.PERSON)


class TestScoring:
    """Pure scoring rules per field type."""

    def test_numeric_exact_match(self):
        result = score_predictions({"wineBottles": 20}, {"wineBottles": 20})
        assert result.breakdown["wineBottles"] == 50
        assert result.total == 50

    def test_numeric_twenty_percent_off(self):
        """|20 - 25| / 25 = 20% -> 10 points."""
        result = score_predictions({"wineBottles": 20}, {"wineBottles": 25})
        assert result.breakdown["wineBottles"] == 10

    @pytest.mark.parametrize("predicted,expected", [
        (22, 25),   # exactly 10%
        (18, 25),   # 10% below
        (25, 10),   # exactly 25%
        (26, 0),    # 30%
    ])
    def test_numeric_bucket_edges(self, predicted, expected):
        assert score_field(NUMERIC, predicted, 20) == expected

    def test_numeric_negative_actual_uses_absolute_value(self):
        """-11 vs -10 is 10% off, not a negative percentage."""
        assert score_field(NUMERIC, -11, -10) == 25

    def test_numeric_actual_zero(self):
        assert score_field(NUMERIC, 0, 0) == 50
        assert score_field(NUMERIC, 1, 0) == 0

    def test_boolean_mismatch(self):
        result = score_predictions({"somethingBurned": True}, {"somethingBurned": False})
        assert result.breakdown["somethingBurned"] == 0

    def test_boolean_does_not_match_integer(self):
        assert score_field(BOOLEAN, True, 1) == 0
        assert score_field(BOOLEAN, False, False) == 50

    def test_person_exact_match(self):
        assert score_field(PERSON, "user-bert", "user-bert") == 50
        assert score_field(PERSON, " user-bert ", "user-bert") == 50
        assert score_field(PERSON, "user-anna", "user-bert") == 0

    @pytest.mark.parametrize("predicted,expected", [
        (10, 50),
        (11, 25),
        (8, 10),
        (13, 0),
    ])
    def test_time_steps(self, predicted, expected):
        assert score_field(TIME, predicted, 10) == expected

    def test_missing_fields_are_skipped(self):
        """A field missing on either side has no breakdown key."""
        result = score_predictions(
            {"wineBottles": 20, "beerCrates": 5},
            {"wineBottles": 20, "meatKilos": 10}
        )
        assert result.breakdown == {"wineBottles": 50}
        assert result.total == 50

    def test_non_numeric_value_is_skipped(self):
        assert score_field(NUMERIC, "twenty", 20) is None

    def test_perfect_score_is_maximum(self, actual_results):
        result = score_predictions(dict(actual_results), actual_results)
        assert result.total == MAX_PREDICTION_POINTS == 600
        assert set(result.breakdown.values()) == {50}

    def test_count_results_entered(self, actual_results):
        assert count_results_entered({}) == 0
        assert count_results_entered({"wineBottles": 0, "somethingBurned": False}) == 2
        assert count_results_entered(actual_results) == 12


class TestPredictionService:
    """Submission, locking and ledger writes."""

    @pytest.mark.asyncio
    async def test_submit_awards_points_once(self, test_db):
        await insert_user(test_db, "user-anna", "Anna")
        service = PredictionService(test_db)

        first = await service.submit_predictions("user-anna", PredictionValues(wineBottles=20))
        second = await service.submit_predictions("user-anna", PredictionValues(wineBottles=30))

        assert first == 5
        assert second == 0
        registration = await RegistrationRepository(test_db).get_by_user("user-anna")
        assert registration.predictions == {"wineBottles": 30}
        entry = await PointsRepository(test_db).find_entry("user-anna", SUBMISSION_DESCRIPTION)
        assert entry.category == "prediction"

    @pytest.mark.asyncio
    async def test_submit_unknown_user(self, test_db):
        service = PredictionService(test_db)

        with pytest.raises(PredictionUserNotFoundError):
            await service.submit_predictions("ghost", PredictionValues(wineBottles=20))

    @pytest.mark.asyncio
    async def test_submit_locked_after_results(self, test_db):
        await insert_user(test_db, "user-anna", "Anna")
        service = PredictionService(test_db)
        await service.save_results(PredictionValues(wineBottles=20), "admin")

        with pytest.raises(PredictionsLockedError):
            await service.submit_predictions("user-anna", PredictionValues(wineBottles=20))

    @pytest.mark.asyncio
    async def test_calculate_without_results(self, test_db):
        with pytest.raises(NoResultsError):
            await PredictionService(test_db).calculate_and_award()

    @pytest.mark.asyncio
    async def test_calculate_is_repeatable(self, test_db):
        """Running calculate twice, with a corrected outcome, never double counts."""
        await insert_user(test_db, "user-anna", "Anna")
        await insert_user(test_db, "user-bert", "Bert")
        service = PredictionService(test_db)
        await service.submit_predictions("user-anna", PredictionValues(wineBottles=20, somethingBurned=True))
        await service.submit_predictions("user-bert", PredictionValues(wineBottles=40))

        await service.save_results(PredictionValues(wineBottles=20, somethingBurned=True), "admin")
        result = await service.calculate_and_award()

        assert result == {"users_processed": 1, "total_points_awarded": 100}

        await service.save_results(PredictionValues(wineBottles=25, somethingBurned=True), "admin")
        await service.calculate_and_award()

        points_repo = PointsRepository(test_db)
        entry = await points_repo.find_entry("user-anna", RESULTS_DESCRIPTION)
        assert entry.points == 60
        # 5 for submitting + 60 for the results, one row each
        assert await points_repo.get_user_total("user-anna") == 65
        assert await points_repo.find_entry("user-bert", RESULTS_DESCRIPTION) is None

    @pytest.mark.asyncio
    async def test_calculate_resets_to_zero(self, test_db):
        await insert_user(test_db, "user-anna", "Anna")
        service = PredictionService(test_db)
        await service.submit_predictions("user-anna", PredictionValues(wineBottles=20))

        await service.save_results(PredictionValues(wineBottles=20), "admin")
        await service.calculate_and_award()
        await service.save_results(PredictionValues(wineBottles=100), "admin")
        await service.calculate_and_award()

        entry = await PointsRepository(test_db).find_entry("user-anna", RESULTS_DESCRIPTION)
        assert entry.points == 0

    @pytest.mark.asyncio
    async def test_get_user_predictions_with_score(self, test_db):
        await insert_user(test_db, "user-anna", "Anna")
        service = PredictionService(test_db)
        await service.submit_predictions("user-anna", PredictionValues(wineBottles=20))

        before = await service.get_user_predictions("user-anna")
        await service.save_results(PredictionValues(wineBottles=25), "admin")
        after = await service.get_user_predictions("user-anna")

        assert before["score"] is None
        assert after["score"].total == 10
