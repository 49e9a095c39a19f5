"""
Risk Scoring Feature Store
Shared feature engineering logic between training and serving
"""

from .features import FeatureExtractor
from .entities import Transaction, FeatureVector, FEATURE_COLUMNS
from .exceptions import FeatureStoreError, InvalidInputError, DependencyDegradedError
from .store import FeatureStore, InMemoryFeatureStore, NetworkRisk
from .redis_store import RedisFeatureStore
from .constants import (
    KNOWN_TRANSACTION_TYPES,
    KNOWN_CURRENCIES,
    FEATURE_GROUPS
)

__all__ = [
    "FeatureExtractor",
    "Transaction",
    "FeatureVector",
    "FEATURE_COLUMNS",
    "FeatureStoreError",
    "InvalidInputError",
    "DependencyDegradedError",
    "FeatureStore",
    "InMemoryFeatureStore",
    "NetworkRisk",
    "RedisFeatureStore",
    "KNOWN_TRANSACTION_TYPES",
    "KNOWN_CURRENCIES",
    "FEATURE_GROUPS"
]
