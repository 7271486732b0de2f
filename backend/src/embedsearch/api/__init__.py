"""
API package for embedsearch.

This package contains the FastAPI routers for the widget protocol.
"""

from .health import router as health_router
from .widget import embed_router, router as widget_router

__all__ = ["embed_router", "health_router", "widget_router"]
