"""
API route handlers for the Property Portal API.
Provides organized routing for different API endpoints.
"""

from .auth import router as auth_router
from .properties import router as properties_router
from .media import router as media_router
from .catalog import router as catalog_router

__all__ = ["auth_router", "properties_router", "media_router", "catalog_router"]
