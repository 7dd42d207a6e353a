# src/campfire_stage/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .groups import router as groups_router
from .messages import router as messages_router
from .system import router as system_router

__all__ = [
    "groups_router",
    "messages_router",
    "system_router",
]
