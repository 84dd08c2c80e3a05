"""Route handlers for the Web API."""

from bizu.web.routes.health import router as health_router
from bizu.web.routes.generation import router as generation_router
from bizu.web.routes.stats import router as stats_router
from bizu.web.routes.chat import router as chat_router
from bizu.web.routes.materials import router as materials_router
from bizu.web.routes.routine import router as routine_router
from bizu.web.routes.radar import router as radar_router

__all__ = [
    "health_router",
    "generation_router",
    "stats_router",
    "chat_router",
    "materials_router",
    "routine_router",
    "radar_router",
]
