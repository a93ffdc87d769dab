"""
Unit tests for EvaluationService
"""

import json

import httpx
import pytest

from app.services.evaluation_service import (
    EvaluationService,
    EvaluationGenerationError,
    EvaluationNotFoundError,
    build_evaluation_prompt,
    generate_fallback_evaluation,
    parse_evaluation,
)
from app.services.prediction_service import NoResultsError
from tests.factories import insert_user


AI_EVALUATION = {
    "officialTitle": "Orakel van de Bovenkamer",
    "task": "Voorspelt voortaan het weer",
    "reasoning": "Twintig flessen, precies goed.",
    "warningLevel": "GROEN",
    "specialPrivilege": "Eerste keus bij de BBQ",
}


def anthropic_handler(text: str, status_code: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json={"content": [{"type": "text", "text": text}]})
    return handler


def with_api_key(service: EvaluationService) -> EvaluationService:
    service.settings = service.settings.model_copy(update={"anthropic_api_key": "sk-test"})
    return service


async def seed(test_db, actual=None):
    await insert_user(test_db, "user-anna", "Anna")
    await insert_user(test_db, "user-bert", "Bert")
    await test_db["registrations"].insert_many([
        {"user_id": "user-anna", "predictions": {"wineBottles": 20, "firstSleeper": "user-bert"}},
        {"user_id": "user-bert", "predictions": {"wineBottles": 99}},
    ])
    await test_db["prediction_results"].insert_one(
        {"_id": "current", "results": actual or {"wineBottles": 20, "firstSleeper": "user-bert"}}
    )


class TestFallback:

    @pytest.mark.parametrize("total,title,level", [
        (600, "Redelijk Ziener", "GROEN"),
        (300, "Redelijk Ziener", "GROEN"),
        (299, "Gokker Zonder Richting", "ORANJE"),
        (150, "Gokker Zonder Richting", "ORANJE"),
        (149, "De Blinde Mol", "ROOD"),
        (0, "De Blinde Mol", "ROOD"),
    ])
    def test_ratio_bands(self, total, title, level):
        evaluation = generate_fallback_evaluation("Anna", total, 600)

        assert evaluation.officialTitle == title
        assert evaluation.warningLevel == level
        assert "Anna" in evaluation.reasoning

    def test_zero_max_points(self):
        assert generate_fallback_evaluation("Anna", 0, 0).warningLevel == "ROOD"


class TestPromptAndParsing:

    def test_prompt_uses_names_and_labels(self):
        prompt = build_evaluation_prompt(
            "Anna",
            {"firstSleeper": "user-bert", "somethingBurned": True},
            {"firstSleeper": "user-bert", "somethingBurned": False},
            {"firstSleeper": 50, "somethingBurned": 0},
            50,
            1,
            2,
            {"user-bert": "Bert"},
        )

        assert 'Eerste slaper: voorspeld "Bert", werkelijk "Bert" → 50 punten' in prompt
        assert 'Iets aangebrand: voorspeld "Ja", werkelijk "Nee" → 0 punten' in prompt
        assert 'Flessen wijn: voorspeld "(niet ingevuld)"' in prompt
        assert "TOTAAL: 50 van 600 punten (rank #1 van 2)" in prompt

    def test_parse_evaluation_with_surrounding_text(self):
        evaluation = parse_evaluation("Hier is het:\n" + json.dumps(AI_EVALUATION) + "\nSucces!")
        assert evaluation.officialTitle == "Orakel van de Bovenkamer"

    @pytest.mark.parametrize("text", [
        "geen json",
        "{niet: geldig}",
        json.dumps({**AI_EVALUATION, "task": ""}),
        json.dumps({"officialTitle": "Alleen een titel"}),
    ])
    def test_parse_evaluation_rejects(self, text):
        with pytest.raises(EvaluationGenerationError):
            parse_evaluation(text)


class TestEvaluationService:

    @pytest.mark.asyncio
    async def test_requires_results(self, test_db):
        with pytest.raises(NoResultsError):
            await EvaluationService(test_db, delay_seconds=0).evaluate_all()

    @pytest.mark.asyncio
    async def test_without_api_key_uses_fallback(self, test_db):
        await seed(test_db)
        service = EvaluationService(test_db, delay_seconds=0)
        service.settings = service.settings.model_copy(update={"anthropic_api_key": None})

        result = await service.evaluate_all()

        assert result == {"generated": 2, "failed": 0, "total": 2, "errors": []}
        anna = await service.get_evaluation("user-anna")
        bert = await service.get_evaluation("user-bert")
        assert anna.evaluation.officialTitle == "De Blinde Mol"  # 100 of 600
        assert bert.evaluation.warningLevel == "ROOD"

    @pytest.mark.asyncio
    async def test_api_evaluation_is_stored(self, test_db):
        await seed(test_db)
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return anthropic_handler(json.dumps(AI_EVALUATION))(request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            service = with_api_key(EvaluationService(test_db, http_client=client, delay_seconds=0))
            result = await service.evaluate_all()

        assert result["generated"] == 2
        assert result["failed"] == 0
        assert len(requests) == 2
        assert requests[0].headers["x-api-key"] == "sk-test"
        assert requests[0].headers["anthropic-version"] == "2023-06-01"
        body = json.loads(requests[0].content)
        assert body["max_tokens"] == 800
        # Highest score goes first
        assert "Anna" in body["messages"][0]["content"]

        stored = await service.get_evaluation("user-anna")
        assert stored.evaluation.officialTitle == "Orakel van de Bovenkamer"

    @pytest.mark.asyncio
    async def test_api_error_falls_back(self, test_db):
        await seed(test_db)
        transport = httpx.MockTransport(anthropic_handler("overloaded", status_code=529))

        async with httpx.AsyncClient(transport=transport) as client:
            service = with_api_key(EvaluationService(test_db, http_client=client, delay_seconds=0))
            result = await service.evaluate_all()

        assert result["generated"] == 2
        assert result["failed"] == 2
        assert len(result["errors"]) == 2
        stored = await service.get_evaluation("user-anna")
        assert stored.evaluation.officialTitle == "De Blinde Mol"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"content": {"text": "x"}},
        {"content": [{"type": "text", "text": 42}]},
        {"content": [{"type": "text", "text": None}]},
        {"content": ["geen object"]},
        ["geen", "object"],
    ])
    async def test_unexpected_response_shape_falls_back(self, test_db, payload):
        await seed(test_db)
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=payload))

        async with httpx.AsyncClient(transport=transport) as client:
            service = with_api_key(EvaluationService(test_db, http_client=client, delay_seconds=0))
            result = await service.evaluate_all()

        assert result["generated"] == 2
        assert result["failed"] == 2
        assert (await service.get_evaluation("user-anna")).evaluation.officialTitle == "De Blinde Mol"
        assert (await service.get_evaluation("user-bert")).evaluation.warningLevel == "ROOD"

    @pytest.mark.asyncio
    async def test_prompt_mentions_existing_assignment_title(self, test_db):
        await seed(test_db)
        await test_db["registrations"].update_one(
            {"user_id": "user-anna"},
            {"$set": {"ai_assignment": {"officialTitle": "Chef Vuurwerk"}}}
        )
        prompts = []

        def handler(request: httpx.Request) -> httpx.Response:
            prompts.append(json.loads(request.content)["messages"][0]["content"])
            return anthropic_handler(json.dumps(AI_EVALUATION))(request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            service = with_api_key(EvaluationService(test_db, http_client=client, delay_seconds=0))
            await service.evaluate_all()

        assert 'Originele functietitel: "Chef Vuurwerk"' in prompts[0]
        assert "Originele functietitel" not in prompts[1]

    @pytest.mark.asyncio
    async def test_network_error_falls_back(self, test_db):
        await seed(test_db)

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            service = with_api_key(EvaluationService(test_db, http_client=client, delay_seconds=0))
            result = await service.evaluate_all()

        assert result["failed"] == 2
        assert (await service.get_evaluation("user-bert")).evaluation.warningLevel == "ROOD"

    @pytest.mark.asyncio
    async def test_rerun_overwrites(self, test_db):
        await seed(test_db)
        service = EvaluationService(test_db, delay_seconds=0)
        service.settings = service.settings.model_copy(update={"anthropic_api_key": None})

        await service.evaluate_all()
        await test_db["prediction_results"].update_one(
            {"_id": "current"},
            {"$set": {"results": {"wineBottles": 99}}}
        )
        await service.evaluate_all()

        bert = await service.get_evaluation("user-bert")
        assert bert.evaluation.officialTitle == "De Blinde Mol"  # 50 of 600
        assert await test_db["user_evaluations"].count_documents({}) == 2

    @pytest.mark.asyncio
    async def test_get_missing_evaluation(self, test_db):
        with pytest.raises(EvaluationNotFoundError):
            await EvaluationService(test_db).get_evaluation("ghost")
