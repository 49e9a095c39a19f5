from datetime import datetime, timezone
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class Score(BaseModel):
    """Risk score for one transaction (cached by transaction id)"""
    model_config = ConfigDict(protected_namespaces=())

    transaction_id: str
    score: float = Field(ge=0.0, le=1.0)
    risk_level: RiskLevel
    is_fraud: bool
    model_version: str
    scored_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    explanation: List[str] = Field(default_factory=list)
