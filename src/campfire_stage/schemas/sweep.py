"""Schemas describing self-destruct sweep results."""
from __future__ import annotations

from pydantic import BaseModel, Field


class SweepResponse(BaseModel):
    """Outcome of a full sweep over active groups."""

    destroyed: list[str] = Field(default_factory=list, description="Ids of destroyed groups")


class GroupCheckResponse(BaseModel):
    """Outcome of an on-demand check of a single group."""

    group_id: str
    destroyed: bool
