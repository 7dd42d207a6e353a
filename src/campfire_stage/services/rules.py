"""Self-destruct rules and the pure evaluator that applies them."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from campfire_stage.db.time import MILLIS_PER_MINUTE, now_millis

RULE_FIELDS = ("max_messages", "duration_minutes", "inactivity_timeout_minutes")


@dataclass(frozen=True)
class SelfDestructRule:
    """Optional thresholds that tear a group down; ``None`` means no limit."""

    max_messages: int | None = None
    duration_minutes: int | None = None
    inactivity_timeout_minutes: int | None = None

    @property
    def is_unbounded(self) -> bool:
        """True when no threshold is set, so the rule can never trigger."""
        return all(getattr(self, name) is None for name in RULE_FIELDS)

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> SelfDestructRule:
        return cls(**{name: document.get(name) for name in RULE_FIELDS})

    def to_document(self) -> dict[str, int | None]:
        return {name: getattr(self, name) for name in RULE_FIELDS}


@dataclass(frozen=True)
class GroupState:
    """The slice of a group document the evaluator looks at."""

    id: str
    created_at: int
    last_activity: int
    is_active: bool = True
    rule: SelfDestructRule = field(default_factory=SelfDestructRule)

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> GroupState:
        return cls(
            id=document["id"],
            created_at=int(document.get("created_at") or 0),
            last_activity=int(document.get("last_activity") or 0),
            is_active=bool(document.get("is_active", True)),
            rule=SelfDestructRule.from_document(document),
        )


def should_destroy(group: GroupState, message_count: int, now: int | None = None) -> bool:
    """Decide whether ``group`` has reached any of its self-destruct thresholds.

    Thresholds are OR-ed: the message cap, the absolute duration measured from
    ``created_at`` and the inactivity timeout measured from ``last_activity``.
    Reaching a threshold exactly counts as reaching it.

    Args:
        group: Group timestamps and rule.
        message_count: Live message count supplied by the caller.
        now: Current time in epoch millis; defaults to the wall clock.
    """
    rule = group.rule or SelfDestructRule()
    current = now_millis() if now is None else now

    if rule.max_messages is not None and message_count >= rule.max_messages:
        return True

    if rule.duration_minutes is not None:
        expires_at = group.created_at + rule.duration_minutes * MILLIS_PER_MINUTE
        if current >= expires_at:
            return True

    if rule.inactivity_timeout_minutes is not None:
        idle_deadline = group.last_activity + rule.inactivity_timeout_minutes * MILLIS_PER_MINUTE
        if current >= idle_deadline:
            return True

    return False


def _format_minutes(minutes: int) -> str:
    hours, rest = divmod(minutes, 60)
    if hours > 0 and rest > 0:
        return f"{hours}h {rest}m"
    if hours > 0:
        return f"{hours}h"
    return f"{rest}m"


def describe_rule(rule: SelfDestructRule | None) -> str:
    """Render a short indicator such as ``"Max: 50 msg • 24h • Timeout: 2h"``.

    Returns an empty string for a rule without thresholds.
    """
    if rule is None:
        return ""
    parts: list[str] = []
    if rule.max_messages is not None:
        parts.append(f"Max: {rule.max_messages} msg")
    if rule.duration_minutes is not None:
        parts.append(_format_minutes(rule.duration_minutes))
    if rule.inactivity_timeout_minutes is not None:
        parts.append(f"Timeout: {_format_minutes(rule.inactivity_timeout_minutes)}")
    return " • ".join(parts)
