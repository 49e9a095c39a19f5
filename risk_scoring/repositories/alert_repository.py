"""
Alert Repository - Data access layer
Alerts and their audit trail; callers own the transaction boundary
"""
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from risk_scoring.database.models.alert import DBAlert, DBAlertAuditLog


class AlertRepository:
    """Repository for fraud alerts database operations"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add_alert(self, alert: DBAlert) -> DBAlert:
        self.session.add(alert)
        await self.session.flush()
        return alert

    async def add_audit(self, entry: DBAlertAuditLog) -> DBAlertAuditLog:
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def get_alerts(
        self,
        status: Optional[str] = None,
        risk_level: Optional[str] = None,
        limit: int = 10,
        page: int = 1
    ) -> Tuple[List[DBAlert], int]:
        """
        Get paginated list of alerts with filters
        Returns: (alerts, total_count)
        """
        # Build base query
        query = select(DBAlert)

        # Apply filters
        if status:
            query = query.where(DBAlert.status == status)
        if risk_level:
            query = query.where(DBAlert.risk_level == risk_level)

        # Get total count for pagination
        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.session.execute(count_query)
        total = total_result.scalar_one()

        # Apply pagination and ordering
        offset = (page - 1) * limit
        query = query.order_by(DBAlert.created_at.desc(), DBAlert.alert_id.desc()).limit(limit).offset(offset)

        result = await self.session.execute(query)
        return list(result.scalars().all()), total

    async def get_open_alerts(self) -> List[DBAlert]:
        query = (
            select(DBAlert)
            .where(DBAlert.status == "Open")
            .order_by(DBAlert.created_at.desc(), DBAlert.alert_id.desc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_alert_by_id(self, alert_id: int) -> Optional[DBAlert]:
        # populate_existing: reflect conditional UPDATEs issued in this session
        query = (
            select(DBAlert)
            .where(DBAlert.alert_id == alert_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def resolve_if_open(
        self,
        alert_id: int,
        notes: Optional[str],
        resolved_by: str,
        resolved_at: datetime
    ) -> bool:
        """
        Conditional Open -> Resolved transition
        Returns False when no open alert with that id exists
        """
        statement = (
            update(DBAlert)
            .where(DBAlert.alert_id == alert_id, DBAlert.status == "Open")
            .values(
                status="Resolved",
                resolution_notes=notes,
                resolved_by=resolved_by,
                resolved_at=resolved_at
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(statement)
        return result.rowcount == 1

    async def get_audit_trail(self, alert_id: int) -> List[DBAlertAuditLog]:
        query = (
            select(DBAlertAuditLog)
            .where(DBAlertAuditLog.alert_id == alert_id)
            .order_by(DBAlertAuditLog.id)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())
