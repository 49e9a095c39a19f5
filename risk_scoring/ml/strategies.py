"""
Scoring strategies
A strategy turns a FeatureVector into a probability-like score in [0, 1]
"""
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional, Protocol

import pandas as pd

from feature_store.constants import (
    HIGH_AMOUNT_THRESHOLD,
    HIGH_FREQUENCY_THRESHOLD,
    HIGH_VELOCITY_AMOUNT_THRESHOLD,
    NIGHT_HOUR_END,
    NIGHT_HOUR_START,
    VERY_HIGH_AMOUNT_THRESHOLD
)
from feature_store.entities import FEATURE_COLUMNS, FeatureVector

logger = logging.getLogger(__name__)

RULES_VERSION = "rules-v1.0-fallback"
BASE_SCORE = 0.3


@dataclass(frozen=True)
class StrategyResult:
    value: float
    model_version: str
    explanation: List[str] = field(default_factory=list)


class ScoringStrategy(Protocol):
    """Single capability shared by every scorer"""

    @property
    def version(self) -> str:
        ...

    def score(self, features: FeatureVector) -> StrategyResult:
        ...


@dataclass(frozen=True)
class RiskRule:
    name: str
    weight: float
    applies: Callable[[FeatureVector], bool]


def _is_unusual_hour(features: FeatureVector) -> bool:
    return features.hour_of_day < NIGHT_HOUR_END or features.hour_of_day > NIGHT_HOUR_START


# Ordered: explanations list fired rules in this order
FALLBACK_RULES: List[RiskRule] = [
    RiskRule(
        "High transaction amount", 0.2,
        lambda f: HIGH_AMOUNT_THRESHOLD < f.amount <= VERY_HIGH_AMOUNT_THRESHOLD
    ),
    # Replaces the +0.2 tier above 50k
    RiskRule(
        "Very high transaction amount", 0.3,
        lambda f: f.amount > VERY_HIGH_AMOUNT_THRESHOLD
    ),
    RiskRule(
        "High transaction frequency", 0.2,
        lambda f: f.velocity_frequency_24h > HIGH_FREQUENCY_THRESHOLD
    ),
    RiskRule(
        "High 24h transaction velocity", 0.2,
        lambda f: f.velocity_amount_24h > HIGH_VELOCITY_AMOUNT_THRESHOLD
    ),
    RiskRule("Missing geolocation", 0.1, lambda f: not f.has_geolocation),
    RiskRule("Unusual transaction time", 0.1, _is_unusual_hour),
]


def triggered_rules(features: FeatureVector) -> List[RiskRule]:
    return [rule for rule in FALLBACK_RULES if rule.applies(features)]


def clamp(value: float) -> float:
    return min(max(float(value), 0.0), 1.0)


class RuleBasedStrategy:
    """Deterministic rule scoring, always available"""

    version = RULES_VERSION

    def score(self, features: FeatureVector) -> StrategyResult:
        fired = triggered_rules(features)
        value = BASE_SCORE + sum(rule.weight for rule in fired)
        return StrategyResult(
            value=round(clamp(value), 4),
            model_version=self.version,
            explanation=[rule.name for rule in fired]
        )


class ModelStrategy:
    """
    MLflow-saved scikit-learn binary classifier
    Score is the class-1 probability
    """

    def __init__(self, model: Any, version: str = "model-unknown"):
        self.model = model
        self.version = version

    @classmethod
    def from_path(cls, model_path: str) -> "ModelStrategy":
        """Load a model saved by risk_scoring.ml.training"""
        import mlflow.sklearn

        logger.info(f"📦 Loading model: {model_path}")
        model = mlflow.sklearn.load_model(model_path)

        version = "model-unknown"
        metrics_file = Path(model_path) / "metrics.json"
        if metrics_file.exists():
            version = json.loads(metrics_file.read_text()).get("model_version", version)

        logger.info(f"✅ Model loaded: {version}")
        return cls(model, version)

    def score(self, features: FeatureVector) -> StrategyResult:
        frame = pd.DataFrame([features.to_model_input()], columns=FEATURE_COLUMNS)
        probability = float(self.model.predict_proba(frame)[0][1])
        return StrategyResult(
            value=round(clamp(probability), 4),
            model_version=self.version,
            explanation=[rule.name for rule in triggered_rules(features)]
        )


def load_model_strategy(model_path: Optional[str]) -> Optional[ModelStrategy]:
    """None when no model is configured or it cannot be loaded"""
    if not model_path:
        logger.warning("⚠️ No model configured, using fallback scoring")
        return None
    try:
        return ModelStrategy.from_path(model_path)
    except Exception as e:
        logger.error(f"❌ Failed to load model from {model_path}: {e}", exc_info=True)
        return None
