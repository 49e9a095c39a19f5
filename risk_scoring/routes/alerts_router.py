"""
Alert Routes - REST API controllers
Uses AlertManager for business logic
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from risk_scoring.api.schemas import AlertsResponse, ErrorResponse, ResolveAlertRequest
from risk_scoring.models.alert import Alert, AlertAuditEntry, AlertStatus
from risk_scoring.models.score import RiskLevel
from risk_scoring.routes.dependencies import get_alert_manager
from risk_scoring.services.alert_manager import AlertManager

alerts_router = APIRouter(prefix="/alerts", tags=["alerts"])


# ============================================================================
# ALERT ENDPOINTS
# ============================================================================

@alerts_router.get("", response_model=AlertsResponse)
async def get_alerts(
    status: Optional[AlertStatus] = None,
    risk_level: Optional[RiskLevel] = None,
    limit: int = Query(10, ge=1, le=100),
    page: int = Query(1, ge=1),
    manager: AlertManager = Depends(get_alert_manager)
):
    """
    Get paginated list of alerts with optional filters

    Query params:
    - status: Open or Resolved
    - risk_level: Low, Medium, High, Critical
    - limit: Items per page (default: 10)
    - page: Page number (default: 1)
    """
    alerts, total = await manager.list_alerts(
        status, risk_level.value if risk_level else None, limit, page
    )
    return AlertsResponse(alerts=alerts, total=total, page=page)


@alerts_router.get("/active", response_model=List[Alert])
async def get_active_alerts(manager: AlertManager = Depends(get_alert_manager)):
    """Open alerts, newest first"""
    return await manager.list_active()


@alerts_router.get(
    "/{alert_id}",
    response_model=Alert,
    responses={404: {"model": ErrorResponse, "description": "Alert not found"}}
)
async def get_alert_detail(
    alert_id: int,
    manager: AlertManager = Depends(get_alert_manager)
):
    return await manager.get_alert(alert_id)


@alerts_router.get("/{alert_id}/audit", response_model=List[AlertAuditEntry])
async def get_alert_audit(
    alert_id: int,
    manager: AlertManager = Depends(get_alert_manager)
):
    """Audit trail of an alert, oldest first"""
    await manager.get_alert(alert_id)
    return await manager.get_audit_trail(alert_id)


@alerts_router.post(
    "/{alert_id}/resolve",
    response_model=Alert,
    responses={
        404: {"model": ErrorResponse, "description": "Alert not found"},
        409: {"model": ErrorResponse, "description": "Alert already resolved"}
    }
)
async def resolve_alert(
    alert_id: int,
    request: ResolveAlertRequest,
    manager: AlertManager = Depends(get_alert_manager)
):
    """
    Resolve an open alert

    404 when the alert does not exist, 409 when it is already resolved
    """
    return await manager.resolve(alert_id, request.notes, request.resolved_by)
