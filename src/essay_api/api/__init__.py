"""
API endpoints for the Essay Question API.

This module contains FastAPI routers for health checks and the essay endpoints.
"""

from essay_api.api.health import router as health_router

__all__ = ["health_router"]
