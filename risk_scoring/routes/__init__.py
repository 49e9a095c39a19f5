from .score_router import score_router
from .alerts_router import alerts_router
from .health_router import health_router

__all__ = ["score_router", "alerts_router", "health_router"]
