# src/campfire_stage/scripts/sweep.py
"""
Cron-friendly one-shot self-destruct sweep.

Runs a single sweep over every active group (or a single on-demand check
with ``--group``) and prints the ids of destroyed groups. Exits non-zero if
the active groups could not be listed.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from sqlalchemy.orm import Session

from campfire_stage.core.logging import configure_logging
from campfire_stage.db.session import session_scope
from campfire_stage.services.self_destruct import SelfDestructService, SweepError
from campfire_stage.services.sql_store import SqlDocumentStore
from campfire_stage.services.store import StoreError


async def run_sweep(db: Session, group_id: str | None = None) -> list[str]:
    """Sweep all groups, or check just ``group_id``; return destroyed ids.

    Args:
        db: Database session
        group_id: Optional single group to check instead of a full sweep
    """
    service = SelfDestructService(SqlDocumentStore(db))
    if group_id is None:
        return await service.sweep_all()
    destroyed = await service.sweep_one(group_id)
    return [group_id] if destroyed else []


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run a self-destruct sweep once.")
    parser.add_argument("--group", help="Check a single group id instead of sweeping all")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    try:
        with session_scope() as db:
            destroyed = asyncio.run(run_sweep(db, args.group))
    except (SweepError, StoreError) as exc:
        print(f"Sweep failed: {exc}", file=sys.stderr)
        return 1

    for group_id in destroyed:
        print(group_id)
    print(f"Destroyed {len(destroyed)} group(s)", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
