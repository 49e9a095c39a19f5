"""
Alert Manager - threshold decision and alert lifecycle
Every create/resolve writes its audit row in the same DB transaction;
events are published to Kafka after commit (best effort)
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional, Set, Tuple

from sqlalchemy.ext.asyncio import async_sessionmaker

from feature_store.entities import Transaction
from risk_scoring.api.mappers import map_alert_to_api, map_audit_to_api
from risk_scoring.database.models.alert import DBAlert, DBAlertAuditLog
from risk_scoring.exceptions import InvalidStateError, NotFoundError
from risk_scoring.messaging.alert_publisher import KafkaAlertPublisher
from risk_scoring.models.alert import Alert, AlertAuditEntry, AlertStatus, AuditAction
from risk_scoring.models.score import Score
from risk_scoring.repositories.alert_repository import AlertRepository

logger = logging.getLogger(__name__)

ALERT_TYPE = "High Risk Transaction"
SYSTEM_ACTOR = "risk-scoring-service"


class AlertManager:
    """Service for alert business logic"""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        publisher: Optional[KafkaAlertPublisher] = None,
        fraud_cutoff: float = 0.8
    ):
        self.session_factory = session_factory
        self.publisher = publisher
        self.fraud_cutoff = fraud_cutoff
        self._pending: Set[asyncio.Task] = set()

    def should_alert(self, score: Score) -> bool:
        """Strictly above the cutoff; a score equal to it does not alert"""
        return score.score > self.fraud_cutoff

    async def create_alert(self, transaction: Transaction, score: Score) -> Alert:
        """Persist an Open alert and its CREATED audit row"""
        now = datetime.now(timezone.utc)
        factors = ", ".join(score.explanation) if score.explanation else "No significant risk factors"

        async with self.session_factory() as session:
            async with session.begin():
                repository = AlertRepository(session)
                db_alert = await repository.add_alert(DBAlert(
                    transaction_id=transaction.transaction_id,
                    alert_type=ALERT_TYPE,
                    risk_score=score.score,
                    risk_level=score.risk_level.value,
                    description=f"Transaction {transaction.transaction_id} flagged with risk score {score.score:.2f}",
                    status=AlertStatus.OPEN.value,
                    resolution_notes=None,
                    resolved_by=None,
                    resolved_at=None,
                    created_at=now
                ))
                db_audit = await repository.add_audit(DBAlertAuditLog(
                    alert_id=db_alert.alert_id,
                    action=AuditAction.CREATED.value,
                    performed_by=SYSTEM_ACTOR,
                    details=f"Risk factors: {factors} (model {score.model_version})",
                    timestamp=now
                ))
                alert, audit = map_alert_to_api(db_alert), map_audit_to_api(db_audit)

        logger.warning(
            f"🚨 Fraud alert {alert.alert_id} created for transaction "
            f"{transaction.transaction_id} with score {score.score:.4f}"
        )
        self._publish_later(alert, audit)
        return alert

    async def list_active(self) -> List[Alert]:
        async with self.session_factory() as session:
            db_alerts = await AlertRepository(session).get_open_alerts()
            return [map_alert_to_api(db_alert) for db_alert in db_alerts]

    async def list_alerts(
        self,
        status: Optional[AlertStatus] = None,
        risk_level: Optional[str] = None,
        limit: int = 10,
        page: int = 1
    ) -> Tuple[List[Alert], int]:
        """Paginated alerts, newest first"""
        async with self.session_factory() as session:
            db_alerts, total = await AlertRepository(session).get_alerts(
                status.value if status else None, risk_level, limit, page
            )
            return [map_alert_to_api(db_alert) for db_alert in db_alerts], total

    async def get_alert(self, alert_id: int) -> Alert:
        async with self.session_factory() as session:
            db_alert = await AlertRepository(session).get_alert_by_id(alert_id)
            if db_alert is None:
                raise NotFoundError(f"Alert {alert_id} not found")
            return map_alert_to_api(db_alert)

    async def get_audit_trail(self, alert_id: int) -> List[AlertAuditEntry]:
        async with self.session_factory() as session:
            entries = await AlertRepository(session).get_audit_trail(alert_id)
            return [map_audit_to_api(entry) for entry in entries]

    async def resolve(self, alert_id: int, notes: Optional[str], resolved_by: str) -> Alert:
        """
        Open -> Resolved, exactly once

        Raises:
            NotFoundError: unknown alert id
            InvalidStateError: alert already resolved
        """
        now = datetime.now(timezone.utc)

        async with self.session_factory() as session:
            async with session.begin():
                repository = AlertRepository(session)
                if not await repository.resolve_if_open(alert_id, notes, resolved_by, now):
                    if await repository.get_alert_by_id(alert_id) is None:
                        raise NotFoundError(f"Alert {alert_id} not found")
                    raise InvalidStateError(f"Alert {alert_id} is already resolved")

                db_audit = await repository.add_audit(DBAlertAuditLog(
                    alert_id=alert_id,
                    action=AuditAction.RESOLVED.value,
                    performed_by=resolved_by,
                    details=notes,
                    timestamp=now
                ))
                db_alert = await repository.get_alert_by_id(alert_id)
                alert, audit = map_alert_to_api(db_alert), map_audit_to_api(db_audit)

        logger.info(f"✅ Alert {alert_id} resolved by {resolved_by}")
        self._publish_later(alert, audit)
        return alert

    def _publish_later(self, alert: Alert, audit: AlertAuditEntry) -> None:
        if self.publisher is None:
            return
        task = asyncio.create_task(self._publish(alert, audit))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _publish(self, alert: Alert, audit: AlertAuditEntry) -> None:
        try:
            await asyncio.to_thread(self.publisher.publish, alert, audit)
        except Exception as e:
            logger.error(f"❌ Alert event publish failed for alert {alert.alert_id}: {e}", exc_info=True)

    async def drain(self) -> None:
        """Wait for in-flight alert events"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        if self.publisher is not None:
            await asyncio.to_thread(self.publisher.close)
