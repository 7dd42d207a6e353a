# src/campfire_stage/models/__init__.py
"""SQLAlchemy models for the Campfire application."""

from .group import Group
from .message import Message

__all__ = [
    "Group",
    "Message",
]
