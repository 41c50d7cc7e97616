"""FastAPI routes."""

from surveilens.adapters.web.routes import router

__all__ = ["router"]
