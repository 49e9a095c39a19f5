"""
Kafka publisher for alert lifecycle events
"""
import json
import logging
from typing import Any, Dict, Optional

from kafka import KafkaProducer
from kafka.errors import KafkaError

from risk_scoring.models.alert import Alert, AlertAuditEntry

logger = logging.getLogger(__name__)


class KafkaAlertPublisher:
    """Publishes alert events to a Kafka topic (blocking client)"""

    def __init__(
        self,
        bootstrap_servers: Optional[str] = None,
        topic: str = 'fraud-alerts',
        producer: Optional[Any] = None
    ):
        self.bootstrap_servers = bootstrap_servers or 'localhost:9092'
        self.topic = topic

        if producer is None:
            logger.info(f"Connecting to Kafka: {self.bootstrap_servers}")
            producer = KafkaProducer(
                bootstrap_servers=self.bootstrap_servers.split(','),
                key_serializer=lambda k: k.encode('utf-8'),
                value_serializer=lambda v: json.dumps(v, default=str).encode('utf-8'),
                acks='all',
                retries=3,
                max_in_flight_requests_per_connection=5
            )
        self.producer = producer

    @staticmethod
    def build_event(alert: Alert, audit: AlertAuditEntry) -> Dict[str, Any]:
        return {
            "event_type": f"alert.{audit.action.value.lower()}",
            "alert": alert.model_dump(mode="json"),
            "audit": audit.model_dump(mode="json"),
        }

    def publish(self, alert: Alert, audit: AlertAuditEntry) -> bool:
        """Publish one alert event; False on failure"""
        event = self.build_event(alert, audit)
        try:
            future = self.producer.send(self.topic, key=str(alert.alert_id), value=event)
            future.get(timeout=10)
            logger.info(f"📤 Published {event['event_type']} for alert {alert.alert_id} to {self.topic}")
            return True

        except KafkaError as e:
            logger.error(f"❌ Failed to publish alert {alert.alert_id}: {e}")
            return False

    def close(self):
        """Close producer connection"""
        if self.producer:
            self.producer.flush()
            self.producer.close()
            self.producer = None
