"""
Risk Scoring ML - strategies, scorer and offline training
"""

from .strategies import (
    FALLBACK_RULES,
    ModelStrategy,
    RiskRule,
    RuleBasedStrategy,
    ScoringStrategy,
    StrategyResult
)
from .scorer import RiskScorer

__all__ = [
    "FALLBACK_RULES",
    "ModelStrategy",
    "RiskRule",
    "RuleBasedStrategy",
    "ScoringStrategy",
    "StrategyResult",
    "RiskScorer",
]
