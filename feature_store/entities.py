"""
Shared entities between scoring, serving and training
Transaction is supplied by the ledger; FeatureVector is derived per transaction
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Transaction(BaseModel):
    """
    Single ledger transaction
    Immutable once created; naive timestamps are read as UTC
    """
    model_config = ConfigDict(frozen=True)

    transaction_id: str
    transaction_type: str = "transfer"
    source_account_id: Optional[str] = None
    destination_account_id: Optional[str] = None
    currency: str = "USD"
    amount: float
    created_at: datetime

    # Enrichment supplied by the ledger when available
    merchant_id: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def created_at_utc(self) -> datetime:
        if self.created_at.tzinfo is None:
            return self.created_at.replace(tzinfo=timezone.utc)
        return self.created_at.astimezone(timezone.utc)

    @property
    def has_geolocation(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class FeatureVector(BaseModel):
    """
    Fixed-shape feature vector for one transaction
    Every feature defaults to 0 so a degraded group never leaves a hole
    """

    transaction_id: str

    # --- Transaction attributes ---
    amount: float = 0.0
    transaction_type_idx: int = 0
    currency_idx: int = 0
    has_geolocation: int = 0

    # --- Time attributes (UTC) ---
    hour_of_day: int = 0
    day_of_week: int = 0
    day_of_month: int = 0
    month: int = 0
    is_weekend: int = 0

    # --- Behavioral aggregates ---
    txn_count_24h: int = Field(0, ge=0)
    txn_count_7d: int = Field(0, ge=0)
    total_amount_24h: float = 0.0
    total_amount_7d: float = 0.0
    avg_amount_7d: float = 0.0
    amount_variance_7d: float = Field(0.0, ge=0.0)

    # --- Velocity aggregates (24h) ---
    velocity_frequency_24h: int = Field(0, ge=0)
    velocity_amount_24h: float = 0.0
    unique_merchants_24h: int = Field(0, ge=0)
    unique_countries_24h: int = Field(0, ge=0)

    # --- Network aggregates ---
    network_risk_score: float = Field(0.0, ge=0.0, le=1.0)
    network_associated_fraud_count: int = Field(0, ge=0)

    # Groups that fell back to defaults (not a model input)
    degraded_groups: List[str] = Field(default_factory=list)

    def to_model_input(self) -> Dict[str, float]:
        """Numeric features in FEATURE_COLUMNS order"""
        return {name: float(getattr(self, name)) for name in FEATURE_COLUMNS}


FEATURE_COLUMNS: List[str] = [
    name for name in FeatureVector.model_fields
    if name not in ("transaction_id", "degraded_groups")
]
