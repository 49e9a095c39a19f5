"""
FastAPI Risk Scoring Service
- Real-time scoring (POST /score) - cache → features → model/rules → alert
- Feature inspection (POST /features)
- Alert lifecycle for analysts (GET /alerts, POST /alerts/{id}/resolve)
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from risk_scoring.api.schemas import ErrorResponse
from risk_scoring.config import Settings, get_settings
from risk_scoring.exceptions import (
    ConfigurationError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    ScoringError
)
from risk_scoring.routes import alerts_router, health_router, score_router
from risk_scoring.services.container import build_container

logger = logging.getLogger(__name__)


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=type(exc).__name__, detail=str(exc)).model_dump()
    )


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(request: Request, exc: InvalidInputError):
        return _error(400, exc)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error(404, exc)

    @app.exception_handler(InvalidStateError)
    async def invalid_state_handler(request: Request, exc: InvalidStateError):
        return _error(409, exc)

    @app.exception_handler(ScoringError)
    async def scoring_error_handler(request: Request, exc: ScoringError):
        logger.error(f"❌ {exc}")
        return _error(503, exc)

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        logger.error(f"❌ {exc}")
        return _error(500, exc)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    # Setup logging
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("=" * 70)
        logger.info("🚀 STARTING RISK SCORING API")
        logger.info("=" * 70)

        app.state.container = await build_container(settings)
        try:
            yield
        finally:
            await app.state.container.close()
            logger.info("🛑 Risk scoring API stopped")

    app = FastAPI(
        title=settings.api_title,
        description="Real-time transaction risk scoring with rule fallback and alerting",
        version=settings.api_version,
        lifespan=lifespan
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # ✅ Include all routers
    app.include_router(health_router)
    app.include_router(score_router)
    app.include_router(alerts_router)

    @app.get("/")
    async def root():
        """API info"""
        return {
            "service": settings.api_title,
            "version": settings.api_version,
            "endpoints": {
                "score": "POST /score",
                "features": "POST /features",
                "alerts": "GET /alerts",
                "active_alerts": "GET /alerts/active",
                "alert_detail": "GET /alerts/{id}",
                "alert_audit": "GET /alerts/{id}/audit",
                "resolve_alert": "POST /alerts/{id}/resolve",
                "health": "GET /health"
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
