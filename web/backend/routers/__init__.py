"""API route handlers."""

from .recommendations import router as recommendations_router
from .health import router as health_router
