"""
Risk scorer - model strategy with fail-over to deterministic rules
"""
import logging
from typing import Optional

from feature_store.entities import FeatureVector

from ..config import Settings
from ..exceptions import ConfigurationError, ScoringError
from ..models.score import RiskLevel, Score
from .strategies import (
    ModelStrategy,
    RuleBasedStrategy,
    ScoringStrategy,
    StrategyResult,
    load_model_strategy
)

logger = logging.getLogger(__name__)


class RiskScorer:
    """
    Scores feature vectors and maps scores to risk levels

    The model strategy is tried first; any inference error falls back to
    the rule strategy when fallback is enabled.
    """

    def __init__(
        self,
        model: Optional[ScoringStrategy] = None,
        fallback: Optional[ScoringStrategy] = None,
        medium_risk_threshold: float = 0.5,
        high_risk_threshold: float = 0.8,
        critical_risk_threshold: Optional[float] = None,
        fraud_cutoff: float = 0.8
    ):
        if model is None and fallback is None:
            raise ConfigurationError("At least one scoring strategy must be enabled")

        self.model = model
        self.fallback = fallback
        self.medium_risk_threshold = medium_risk_threshold
        self.high_risk_threshold = high_risk_threshold
        self.critical_risk_threshold = critical_risk_threshold
        self.fraud_cutoff = fraud_cutoff

    @classmethod
    def from_settings(cls, settings: Settings) -> "RiskScorer":
        model: Optional[ModelStrategy] = None
        if settings.model_enabled:
            model = load_model_strategy(settings.model_path)

        fallback = RuleBasedStrategy() if settings.fallback_enabled else None
        if settings.model_enabled and model is None and fallback is None:
            raise ConfigurationError(
                f"Model could not be loaded from {settings.model_path!r} and fallback is disabled"
            )

        return cls(
            model=model,
            fallback=fallback,
            medium_risk_threshold=settings.medium_risk_threshold,
            high_risk_threshold=settings.high_risk_threshold,
            critical_risk_threshold=settings.critical_risk_threshold,
            fraud_cutoff=settings.fraud_cutoff
        )

    @property
    def model_loaded(self) -> bool:
        return self.model is not None

    @property
    def version(self) -> str:
        active = self.model or self.fallback
        return active.version

    def score(self, features: FeatureVector) -> StrategyResult:
        """
        Raw strategy result for a feature vector

        Raises:
            ScoringError: model failed and fallback is disabled
        """
        if self.model is not None:
            try:
                return self.model.score(features)
            except Exception as e:
                if self.fallback is None:
                    raise ScoringError(f"Model scoring failed for {features.transaction_id}: {e}") from e
                logger.error(f"❌ Model prediction failed, using fallback: {e}", exc_info=True)

        return self.fallback.score(features)

    def risk_level(self, score: float) -> RiskLevel:
        if self.critical_risk_threshold is not None and score >= self.critical_risk_threshold:
            return RiskLevel.CRITICAL
        if score >= self.high_risk_threshold:
            return RiskLevel.HIGH
        if score >= self.medium_risk_threshold:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    def is_fraud(self, score: float) -> bool:
        return score > self.fraud_cutoff

    def build_score(self, features: FeatureVector) -> Score:
        """Score a feature vector into the cached/returned Score"""
        result = self.score(features)
        return Score(
            transaction_id=features.transaction_id,
            score=result.value,
            risk_level=self.risk_level(result.value),
            is_fraud=self.is_fraud(result.value),
            model_version=result.model_version,
            explanation=result.explanation
        )
