from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .score import RiskLevel


class AlertStatus(str, Enum):
    OPEN = "Open"
    RESOLVED = "Resolved"


class AuditAction(str, Enum):
    CREATED = "CREATED"
    RESOLVED = "RESOLVED"


class Alert(BaseModel):
    """Alert summary (fraud_alerts table)"""
    model_config = ConfigDict(from_attributes=True)

    alert_id: int
    transaction_id: str
    alert_type: str
    risk_score: float
    risk_level: RiskLevel
    description: str
    status: AlertStatus
    resolution_notes: Optional[str] = None
    resolved_by: Optional[str] = None
    created_at: datetime
    resolved_at: Optional[datetime] = None


class AlertAuditEntry(BaseModel):
    """Append-only audit record (fraud_alert_audit_logs table)"""
    model_config = ConfigDict(from_attributes=True)

    alert_id: int
    action: AuditAction
    performed_by: str
    timestamp: datetime
    details: Optional[str] = None
