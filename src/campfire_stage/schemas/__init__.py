# src/campfire_stage/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .group import GroupCreate, GroupResponse, GroupUpdate, SelfDestructRuleSchema
from .message import MessageCreate, MessageResponse, MessageUpdate
from .sweep import GroupCheckResponse, SweepResponse

__all__ = [
    "GroupCreate", "GroupResponse", "GroupUpdate", "SelfDestructRuleSchema",
    "MessageCreate", "MessageResponse", "MessageUpdate",
    "GroupCheckResponse", "SweepResponse",
]
