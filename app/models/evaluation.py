from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class Evaluation(BaseModel):
    """Humoristische beoordeling van de voorspelkwaliteiten"""

    officialTitle: str
    task: str
    reasoning: str
    warningLevel: str  # GROEN | GEEL | ORANJE | ROOD
    specialPrivilege: str


class UserEvaluation(BaseModel):
    user_id: str
    type: str = "prediction"
    evaluation: Evaluation
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
