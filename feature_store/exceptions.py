"""
Errors raised while building features
"""
from typing import Optional


class FeatureStoreError(Exception):
    """Base error for feature extraction"""


class InvalidInputError(FeatureStoreError, ValueError):
    """Malformed transaction - fatal to the scoring request"""

    def __init__(self, message: str, transaction_id: Optional[str] = None):
        super().__init__(message)
        self.transaction_id = transaction_id


class DependencyDegradedError(FeatureStoreError):
    """A dependency failed and its output was replaced by defaults"""

    def __init__(self, dependency: str, cause: Optional[BaseException] = None):
        detail = f": {cause!r}" if cause is not None else ""
        super().__init__(f"{dependency} degraded{detail}")
        self.dependency = dependency
        self.cause = cause
