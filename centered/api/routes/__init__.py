"""Route package: exports every FastAPI router."""

from .analysis import router as analysis_router
from .entries import router as entries_router
from .health import router as health_router

__all__ = ["health_router", "entries_router", "analysis_router"]
