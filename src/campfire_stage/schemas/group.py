# src/campfire_stage/schemas/group.py
"""Group-related Pydantic schemas."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

from campfire_stage.services.rules import SelfDestructRule, describe_rule


class SelfDestructRuleSchema(BaseModel):
    """Optional self-destruct thresholds; omitted or null means no limit."""

    max_messages: int | None = Field(None, ge=0, description="Destroy once this many messages exist")
    duration_minutes: int | None = Field(
        None, ge=0, description="Destroy this many minutes after creation"
    )
    inactivity_timeout_minutes: int | None = Field(
        None, ge=0, description="Destroy after this many minutes without a message"
    )

    def to_rule(self) -> SelfDestructRule:
        return SelfDestructRule(
            max_messages=self.max_messages,
            duration_minutes=self.duration_minutes,
            inactivity_timeout_minutes=self.inactivity_timeout_minutes,
        )


class GroupCreate(BaseModel):
    """Schema for creating a new group."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    self_destruct_rule: SelfDestructRuleSchema = Field(default_factory=SelfDestructRuleSchema)


class GroupUpdate(BaseModel):
    """Schema for editing a group; omitted fields are left unchanged."""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    self_destruct_rule: SelfDestructRuleSchema | None = None


class GroupResponse(BaseModel):
    """Schema for group information returned by the API."""

    id: str
    name: str
    description: str
    created_by: str
    member_ids: list[str]
    created_at: int
    last_activity: int
    message_count: int
    self_destruct_rule: SelfDestructRuleSchema
    rule_summary: str
    is_active: bool

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> GroupResponse:
        """Build a response from a flat group document."""
        rule = SelfDestructRule.from_document(document)
        return cls(
            id=document["id"],
            name=document["name"],
            description=document.get("description") or "",
            created_by=document["created_by"],
            member_ids=list(document.get("member_ids") or []),
            created_at=document["created_at"],
            last_activity=document["last_activity"],
            message_count=document.get("message_count") or 0,
            self_destruct_rule=SelfDestructRuleSchema(**rule.to_document()),
            rule_summary=describe_rule(rule),
            is_active=document["is_active"],
        )
