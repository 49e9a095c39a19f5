"""
Request/Response Models (API Layer)
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from risk_scoring.models.alert import Alert
from risk_scoring.models.score import Score


class ScoreResponse(BaseModel):
    """Single transaction scoring result"""
    score: Score
    alert: Optional[Alert] = None
    cache_hit: bool
    latency_ms: float
    budget_exceeded: bool
    degraded_groups: List[str] = Field(default_factory=list)


class AlertsResponse(BaseModel):
    """Paginated alerts"""
    alerts: List[Alert]
    total: int
    page: int


class ResolveAlertRequest(BaseModel):
    notes: Optional[str] = None
    resolved_by: str = Field(min_length=1)


class HealthResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    status: str
    cache_backend: str
    feature_store_backend: str
    database: str
    redis: str
    model_loaded: bool
    model_version: str
    timestamp: datetime


class ErrorResponse(BaseModel):
    error: str
    detail: str
