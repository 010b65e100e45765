"""API route modules."""
from .users import router as users_router
from .preferences import router as preferences_router
from .peptides import router as peptides_router
from .injections import router as injections_router
from .protocols import router as protocols_router
from .wellness import router as wellness_router
from .alerts import router as alerts_router
from .analytics import router as analytics_router

__all__ = [
    "users_router",
    "preferences_router",
    "peptides_router",
    "injections_router",
    "protocols_router",
    "wellness_router",
    "alerts_router",
    "analytics_router",
]
