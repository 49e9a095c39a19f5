"""
SQLAlchemy models for fraud alert tables
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text

from risk_scoring.database.postgres_client import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DBAlert(Base):
    """Fraud alert model - never deleted, only resolved"""
    __tablename__ = "fraud_alerts"

    alert_id = Column(Integer, primary_key=True, autoincrement=True)

    transaction_id = Column(String(100), nullable=False, index=True)
    alert_type = Column(String(50), nullable=False)
    risk_score = Column(Float, nullable=False)
    risk_level = Column(String(20), nullable=False, index=True)
    description = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, index=True, default="Open")

    # Resolution
    resolution_notes = Column(Text)
    resolved_by = Column(String(100))
    resolved_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class DBAlertAuditLog(Base):
    """Append-only alert audit trail"""
    __tablename__ = "fraud_alert_audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    alert_id = Column(Integer, ForeignKey("fraud_alerts.alert_id"), nullable=False, index=True)

    action = Column(String(20), nullable=False)
    performed_by = Column(String(100), nullable=False)
    details = Column(Text)
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False)
