# src/campfire_stage/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import groups_router, messages_router, system_router

__all__ = [
    "groups_router",
    "messages_router",
    "system_router",
]
