# src/campfire_stage/scripts/seed_demo.py
"""Seed a development database with demo groups covering every rule type."""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass

from sqlalchemy.orm import Session

from campfire_stage.core.logging import configure_logging
from campfire_stage.db.session import create_tables, session_scope
from campfire_stage.db.time import minutes_ago, now_millis
from campfire_stage.services.group_service import GroupService
from campfire_stage.services.message_service import MessageService
from campfire_stage.services.rules import SelfDestructRule
from campfire_stage.services.sql_store import SqlDocumentStore
from campfire_stage.services.store import GROUPS

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR


@dataclass(frozen=True)
class DemoGroup:
    name: str
    description: str
    rule: SelfDestructRule
    created_minutes_ago: int
    last_activity_minutes_ago: int
    messages: tuple[str, ...]


DEMO_GROUPS = (
    DemoGroup(
        name="Quick Chat",
        description="A group that disappears after 50 messages",
        rule=SelfDestructRule(max_messages=50),
        created_minutes_ago=2 * MINUTES_PER_DAY,
        last_activity_minutes_ago=MINUTES_PER_HOUR,
        messages=("Hello everyone!", "This group will disappear after 50 messages"),
    ),
    DemoGroup(
        name="Daily Standup",
        description="24-hour group for daily updates",
        rule=SelfDestructRule(duration_minutes=MINUTES_PER_DAY),
        created_minutes_ago=12 * MINUTES_PER_HOUR,
        last_activity_minutes_ago=30,
        messages=("Good morning team!", "This group expires in 12 hours"),
    ),
    DemoGroup(
        name="Study Group",
        description="Disappears after 2 hours of inactivity",
        rule=SelfDestructRule(inactivity_timeout_minutes=2 * MINUTES_PER_HOUR),
        created_minutes_ago=6 * MINUTES_PER_HOUR,
        last_activity_minutes_ago=45,
        messages=("Let's study together!", "Group disappears after 2 hours of silence"),
    ),
    DemoGroup(
        name="Permanent Chat",
        description="No self-destruct rules",
        rule=SelfDestructRule(),
        created_minutes_ago=7 * MINUTES_PER_DAY,
        last_activity_minutes_ago=5,
        messages=("This group has no time limits", "We can chat here indefinitely!"),
    ),
)


async def seed_demo_data(db: Session, user_id: str, display_name: str) -> list[str]:
    """Create the demo groups owned by ``user_id``; return their ids.

    Args:
        db: Database session
        user_id: Identity provider id of the demo owner
        display_name: Name shown on the seeded messages
    """
    store = SqlDocumentStore(db)
    groups = GroupService(store)
    messages = MessageService(store, groups)
    now = now_millis()

    created: list[str] = []
    for demo in DEMO_GROUPS:
        group = await groups.create_group(
            name=demo.name,
            description=demo.description,
            created_by=user_id,
            rule=demo.rule,
            created_at=minutes_ago(demo.created_minutes_ago, now),
        )
        for content in demo.messages:
            await messages.send_message(
                group["id"], sender_id=user_id, sender_name=display_name, content=content
            )
        # Sending bumps last_activity; restore the scenario's idle time.
        await store.update(
            GROUPS,
            group["id"],
            {"last_activity": minutes_ago(demo.last_activity_minutes_ago, now)},
        )
        created.append(group["id"])
        print(f"Seeded group {demo.name!r} ({group['id']})")
    return created


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Seed demo groups and messages.")
    parser.add_argument("--user-id", default="demo-alice")
    parser.add_argument("--display-name", default="Alice")
    args = parser.parse_args(argv)

    configure_logging()
    create_tables()

    with session_scope() as db:
        asyncio.run(seed_demo_data(db, args.user_id, args.display_name))


if __name__ == "__main__":
    main()
