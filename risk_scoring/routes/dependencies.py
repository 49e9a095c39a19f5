"""
Shared route dependencies
"""
from fastapi import Request

from risk_scoring.services.alert_manager import AlertManager
from risk_scoring.services.container import Container
from risk_scoring.services.scoring_pipeline import ScoringPipeline


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_pipeline(request: Request) -> ScoringPipeline:
    return get_container(request).pipeline


def get_alert_manager(request: Request) -> AlertManager:
    return get_container(request).alert_manager
