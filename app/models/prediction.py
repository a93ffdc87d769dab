from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class PredictionFieldType(str, Enum):
    NUMERIC = "numeric"    # afstand in procenten
    PERSON = "person"      # exact (user id)
    BOOLEAN = "boolean"    # exact
    TIME = "time"          # slider index, half-uur stappen


class PredictionField(BaseModel):
    """Definitie van een voorspellingsveld (statische configuratie)"""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    type: PredictionFieldType


PREDICTION_FIELDS: tuple[PredictionField, ...] = (
    PredictionField(key="wineBottles", label="Flessen wijn", type=PredictionFieldType.NUMERIC),
    PredictionField(key="beerCrates", label="Kratten bier", type=PredictionFieldType.NUMERIC),
    PredictionField(key="meatKilos", label="Kilo's vlees", type=PredictionFieldType.NUMERIC),
    PredictionField(key="firstSleeper", label="Eerste slaper", type=PredictionFieldType.PERSON),
    PredictionField(key="spontaneousSinger", label="Spontane zanger", type=PredictionFieldType.PERSON),
    PredictionField(key="firstToLeave", label="Eerste vertrekker", type=PredictionFieldType.PERSON),
    PredictionField(key="lastToLeave", label="Laatste vertrekker", type=PredictionFieldType.PERSON),
    PredictionField(key="loudestLaugher", label="Luidste lacher", type=PredictionFieldType.PERSON),
    PredictionField(key="longestStoryTeller", label="Langste verhaal", type=PredictionFieldType.PERSON),
    PredictionField(key="somethingBurned", label="Iets aangebrand", type=PredictionFieldType.BOOLEAN),
    PredictionField(key="outsideTemp", label="Buitentemperatuur", type=PredictionFieldType.NUMERIC),
    PredictionField(key="lastGuestTime", label="Laatste gast vertrokken", type=PredictionFieldType.TIME),
)

POINTS_PER_FIELD = 50
MAX_PREDICTION_POINTS = len(PREDICTION_FIELDS) * POINTS_PER_FIELD


class PredictionValues(BaseModel):
    """
    Waarden voor de twaalf velden.

    Zelfde vorm voor de voorspelling van een deelnemer en voor de
    werkelijke uitkomsten die de admin invult. Alles is optioneel.
    """

    model_config = ConfigDict(extra="forbid")

    wineBottles: Optional[int] = Field(None, ge=0)
    beerCrates: Optional[int] = Field(None, ge=0)
    meatKilos: Optional[float] = Field(None, ge=0)
    firstSleeper: Optional[str] = None
    spontaneousSinger: Optional[str] = None
    firstToLeave: Optional[str] = None
    lastToLeave: Optional[str] = None
    loudestLaugher: Optional[str] = None
    longestStoryTeller: Optional[str] = None
    somethingBurned: Optional[bool] = None
    outsideTemp: Optional[float] = None
    lastGuestTime: Optional[int] = Field(None, ge=0, le=22)  # 0=19:00, 22=06:00


class PredictionResultSnapshot(BaseModel):
    """Werkelijke uitkomsten (één document per evenement)"""

    results: dict = {}
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None


class ScoreResult(BaseModel):
    total: int
    breakdown: dict[str, int]
