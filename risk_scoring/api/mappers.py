"""
Mappers to convert between DB models and API/domain models
DB (SQLAlchemy) → API (Pydantic)
"""
from risk_scoring.database.models.alert import DBAlert, DBAlertAuditLog
from risk_scoring.models.alert import Alert, AlertAuditEntry


def map_alert_to_api(db_alert: DBAlert) -> Alert:
    """
    Convert DBAlert (SQLAlchemy) → Alert (Pydantic/Kafka)
    """
    return Alert.model_validate(db_alert)


def map_audit_to_api(db_entry: DBAlertAuditLog) -> AlertAuditEntry:
    """
    Convert DBAlertAuditLog (SQLAlchemy) → AlertAuditEntry (Pydantic/Kafka)
    """
    return AlertAuditEntry.model_validate(db_entry)
