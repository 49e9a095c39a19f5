"""
Domain errors for the scoring service
Feature-level errors live in feature_store and are re-exported here
"""
from feature_store.exceptions import (
    DependencyDegradedError,
    FeatureStoreError,
    InvalidInputError
)


class RiskScoringError(Exception):
    """Base error for scoring, alerting and configuration"""


class NotFoundError(RiskScoringError):
    """Referenced alert does not exist"""


class InvalidStateError(RiskScoringError):
    """Lifecycle transition not allowed from the current state"""


class ScoringError(RiskScoringError):
    """No strategy could produce a score"""


class ConfigurationError(RiskScoringError):
    """Components were configured into an unusable combination"""


__all__ = [
    "RiskScoringError",
    "NotFoundError",
    "InvalidStateError",
    "ScoringError",
    "ConfigurationError",
    "FeatureStoreError",
    "InvalidInputError",
    "DependencyDegradedError"
]
