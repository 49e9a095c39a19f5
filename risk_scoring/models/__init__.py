"""
Risk Scoring domain models
"""

from .score import RiskLevel, Score
from .alert import Alert, AlertAuditEntry, AlertStatus, AuditAction

__all__ = [
    "RiskLevel",
    "Score",
    "Alert",
    "AlertAuditEntry",
    "AlertStatus",
    "AuditAction",
]
