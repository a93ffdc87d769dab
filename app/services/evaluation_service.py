"""
EvaluationService - humorous evaluations of each participant's predictions.

After the outcomes are in, every participant with predictions gets a short
verdict (title, task, reasoning, warning level, privilege). When an Anthropic
API key is configured the text is generated by the Messages API; otherwise,
or when anything goes wrong with the call, a fixed verdict based on the score
ratio is used. Either way the evaluation is stored.
"""

import asyncio
import json
import logging
import re
from typing import Any, Optional

import httpx
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from app.core.config import get_settings
from app.models.evaluation import Evaluation, UserEvaluation
from app.models.prediction import (
    PredictionFieldType,
    PREDICTION_FIELDS,
    MAX_PREDICTION_POINTS,
)
from app.repositories.evaluation_repository import EvaluationRepository
from app.repositories.prediction_repository import PredictionRepository
from app.repositories.registration_repository import RegistrationRepository
from app.repositories.user_repository import UserRepository
from app.services.prediction_service import NoResultsError, score_predictions

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"
MAX_TOKENS = 800

JSON_OBJECT_PATTERN = re.compile(r"\{.*\}", re.DOTALL)


class EvaluationServiceError(Exception):
    """Base exception for evaluation service errors."""
    pass


class EvaluationNotFoundError(EvaluationServiceError):
    """Raised when a user has no stored evaluation."""
    pass


class EvaluationGenerationError(EvaluationServiceError):
    """Raised when the API call fails or returns something unusable."""
    pass


def generate_fallback_evaluation(name: str, total_points: int, max_points: int) -> Evaluation:
    ratio = total_points / max_points if max_points > 0 else 0

    if ratio >= 0.5:
        return Evaluation(
            officialTitle="Redelijk Ziener",
            task="Mag volgend jaar weer voorspellen (maar verwacht er niet te veel van)",
            reasoning=(
                f"{name} heeft een behoorlijke score neergezet. De commissie is mild onder "
                "de indruk, maar waarschuwt voor overmoedigheid."
            ),
            warningLevel="GROEN",
            specialPrivilege="Mag als eerste de uitslag zien bij het volgende event",
        )

    if ratio >= 0.25:
        return Evaluation(
            officialTitle="Gokker Zonder Richting",
            task="Wordt aangeraden een muntje te gebruiken bij toekomstige voorspellingen",
            reasoning=(
                f"{name} had evenveel kans gehad door willekeurig te gokken. De commissie "
                "adviseert een carrièreswitch naar iets met minder onzekerheid."
            ),
            warningLevel="ORANJE",
            specialPrivilege="Krijgt een troostprijs: een kop koffie",
        )

    return Evaluation(
        officialTitle="De Blinde Mol",
        task="Mag volgend jaar niet meer voorspellen zonder begeleiding",
        reasoning=f"{name} heeft er werkelijk niets van gebakken. De commissie overweegt een voorspelverbod.",
        warningLevel="ROOD",
        specialPrivilege="Mag het scorebord vasthouden (zodat iedereen kan zien hoe het niet moet)",
    )


def format_prediction_value(value: Any, field_type: PredictionFieldType, names: dict[str, str]) -> str:
    if value is None:
        return "(niet ingevuld)"
    if field_type == PredictionFieldType.BOOLEAN:
        return "Ja" if value else "Nee"
    if field_type == PredictionFieldType.PERSON:
        return names.get(str(value), str(value))
    return str(value)


def build_evaluation_prompt(
    name: str,
    predictions: dict[str, Any],
    actual_results: dict[str, Any],
    breakdown: dict[str, int],
    total_points: int,
    rank: int,
    total_users: int,
    names: dict[str, str],
    original_title: Optional[str] = None
) -> str:
    lines = []
    for field in PREDICTION_FIELDS:
        predicted = format_prediction_value(predictions.get(field.key), field.type, names)
        actual = format_prediction_value(actual_results.get(field.key), field.type, names)
        points = breakdown.get(field.key, 0)
        lines.append(f'- {field.label}: voorspeld "{predicted}", werkelijk "{actual}" → {points} punten')

    title_line = f'- Originele functietitel: "{original_title}"' if original_title else ""

    return f"""Je bent de BOVENKAMER WINTERPROEF COMMISSIE. Beoordeel de voorspelkwaliteiten van deze persoon op basis van hun voorspellingen vs de werkelijkheid.

De humor is droog en ironisch. Verwijs specifiek naar hun voorspellingen. Maak het persoonlijk en grappig. Gebruik het Nederlands.

PERSOON:
- Naam: {name}
{title_line}

VOORSPELLINGEN vs WERKELIJKHEID:
{chr(10).join(lines)}

TOTAAL: {total_points} van {MAX_PREDICTION_POINTS} punten (rank #{rank} van {total_users})

Genereer een JSON object met EXACT deze structuur (in het Nederlands):
{{
  "officialTitle": "Een grappige titel op basis van hun voorspelkwaliteiten (bijv. 'Nostradamus van Venray', 'De Blinde Mol', 'Orakel van de Bovenkamer')",
  "task": "Een sarcastische aanbeveling of opdracht op basis van hoe goed/slecht ze voorspelden",
  "reasoning": "Een droog-humoristische analyse van 2-3 zinnen met specifieke verwijzingen naar hun meest opvallende voorspellingen",
  "warningLevel": "GROEN (als ze goed voorspelden) of GEEL (gemiddeld) of ORANJE (matig) of ROOD (hopeloos)",
  "specialPrivilege": "Een passend privilege of straf op basis van hun score"
}}

Geef ALLEEN het JSON object terug, geen andere tekst."""


def parse_evaluation(text: str) -> Evaluation:
    """
    Pull the JSON object out of the model's answer.

    Raises EvaluationGenerationError when there is no object or a key is missing.
    """
    match = JSON_OBJECT_PATTERN.search(text or "")
    if not match:
        raise EvaluationGenerationError("Geen JSON in antwoord")

    try:
        evaluation = Evaluation.model_validate(json.loads(match.group(0)))
    except (json.JSONDecodeError, ValidationError) as e:
        raise EvaluationGenerationError(f"Ongeldige evaluatie: {e}") from e

    if not all(evaluation.model_dump().values()):
        raise EvaluationGenerationError("Evaluatie heeft lege velden")
    return evaluation


class EvaluationService:
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        http_client: Optional[httpx.AsyncClient] = None,
        delay_seconds: Optional[float] = None
    ):
        self.settings = get_settings()
        self.evaluation_repo = EvaluationRepository(db)
        self.prediction_repo = PredictionRepository(db)
        self.registration_repo = RegistrationRepository(db)
        self.user_repo = UserRepository(db)
        self.http_client = http_client
        self.delay_seconds = (
            self.settings.evaluation_delay_seconds if delay_seconds is None else delay_seconds
        )

    async def _request_evaluation(self, prompt: str) -> Evaluation:
        async def send(client: httpx.AsyncClient) -> httpx.Response:
            return await client.post(
                self.settings.anthropic_api_url,
                headers={
                    "Content-Type": "application/json",
                    "x-api-key": self.settings.anthropic_api_key,
                    "anthropic-version": ANTHROPIC_VERSION,
                },
                json={
                    "model": self.settings.anthropic_model,
                    "max_tokens": MAX_TOKENS,
                    "messages": [{"role": "user", "content": prompt}],
                },
            )

        if self.http_client is not None:
            response = await send(self.http_client)
        else:
            async with httpx.AsyncClient(timeout=self.settings.anthropic_timeout_seconds) as client:
                response = await send(client)

        if response.status_code != 200:
            raise EvaluationGenerationError(f"API status {response.status_code}: {response.text[:200]}")

        try:
            content = response.json().get("content") or []
            text = content[0].get("text", "") if content else ""
        except (ValueError, AttributeError, KeyError, IndexError, TypeError) as e:
            raise EvaluationGenerationError("Onleesbaar API antwoord") from e

        if not isinstance(text, str):
            raise EvaluationGenerationError("API antwoord bevat geen tekst")
        return parse_evaluation(text)

    async def evaluate_all(self) -> dict:
        """
        Generate and store an evaluation for everyone with predictions.

        Failed API calls fall back to the fixed verdict and are reported in
        `errors`; a stored fallback still counts as generated.
        """
        snapshot = await self.prediction_repo.get_snapshot()
        if not snapshot or not snapshot.results:
            raise NoResultsError("Geen uitkomsten gevonden. Vul eerst de uitkomsten in.")

        names = await self.user_repo.get_names()
        registrations = await self.registration_repo.list_with_predictions()

        scored = []
        for registration in registrations:
            score = score_predictions(registration.predictions, snapshot.results)
            scored.append((registration, score))
        scored.sort(key=lambda item: -item[1].total)

        use_api = bool(self.settings.anthropic_api_key)
        total_users = len(scored)
        generated = 0
        failed = 0
        errors: list[str] = []

        for index, (registration, score) in enumerate(scored):
            name = names.get(registration.user_id, "Onbekend")
            evaluation = None

            if use_api:
                original_title = (registration.ai_assignment or {}).get("officialTitle")
                prompt = build_evaluation_prompt(
                    name,
                    registration.predictions,
                    snapshot.results,
                    score.breakdown,
                    score.total,
                    index + 1,
                    total_users,
                    names,
                    original_title
                )
                try:
                    evaluation = await self._request_evaluation(prompt)
                except (httpx.HTTPError, EvaluationGenerationError) as e:
                    logger.warning(f"⚠️ Evaluation for {name} fell back: {e}")
                    errors.append(f"{name}: {e}")
                    failed += 1

                if index < total_users - 1 and self.delay_seconds > 0:
                    await asyncio.sleep(self.delay_seconds)

            if evaluation is None:
                evaluation = generate_fallback_evaluation(name, score.total, MAX_PREDICTION_POINTS)

            try:
                await self.evaluation_repo.upsert(registration.user_id, evaluation)
                generated += 1
            except PyMongoError as e:
                logger.error(f"❌ Could not store evaluation for {name}: {e}")
                errors.append(f"{name}: {e}")
                failed += 1

        logger.info(f"✅ Evaluations generated: {generated}/{total_users} ({failed} failed)")
        return {
            "generated": generated,
            "failed": failed,
            "total": total_users,
            "errors": errors,
        }

    async def get_evaluation(self, user_id: str) -> UserEvaluation:
        evaluation = await self.evaluation_repo.get(user_id)
        if not evaluation:
            raise EvaluationNotFoundError("Geen evaluatie gevonden")
        return evaluation
