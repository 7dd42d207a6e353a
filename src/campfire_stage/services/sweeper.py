"""Background task running the periodic self-destruct sweep.

The worker owns no state beyond bookkeeping: each iteration opens a fresh
database session, runs :meth:`SelfDestructService.sweep_all` and sleeps for
the configured interval.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from campfire_stage.core.settings import settings
from campfire_stage.db.session import SessionLocal
from campfire_stage.services.self_destruct import SelfDestructService, SweepError
from campfire_stage.services.sql_store import SqlDocumentStore
from campfire_stage.services.store import StoreError

# Configure logger for this module
logger = logging.getLogger(__name__)

MAX_BACKOFF_SECONDS = 30.0


@dataclass
class SweepStats:
    """Mutable bookkeeping for the sweep loop."""

    sweeps_completed: int = 0
    sweeps_failed: int = 0
    groups_destroyed: int = 0
    last_destroyed: list[str] = field(default_factory=list)


class SelfDestructSweepWorker:
    """Periodically sweeps all active groups and destroys expired ones."""

    def __init__(
        self,
        interval: float | None = None,
        db_session: Session | None = None,
        session_factory: Callable[[], Session] = SessionLocal,
    ) -> None:
        """Initialize the sweep worker.

        Args:
            interval: Seconds between sweeps. Defaults to ``SWEEP_INTERVAL_SECONDS``.
            db_session: Optional database session. If None, creates a new session per sweep.
            session_factory: Factory used when no session is provided.
        """
        self.interval = max(
            0.1, float(interval if interval is not None else settings.sweep_interval_seconds)
        )
        self.stats = SweepStats()
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()
        self._db_session = db_session
        self._session_factory = session_factory

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background sweep loop."""
        if not self.running:
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())
            logger.info("Self-destruct sweeper started (interval %.1fs)", self.interval)

    async def stop(self) -> None:
        """Stop the background sweep loop and wait for it to finish."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None
        logger.info("Self-destruct sweeper stopped")

    async def _sleep(self, seconds: float) -> None:
        # Wake early when stop() is requested.
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=seconds)
        except TimeoutError:
            pass

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await self.run_once()
            except (SweepError, StoreError) as e:
                self.stats.sweeps_failed += 1
                logger.warning("Self-destruct sweep failed: %s", e)
                await self._sleep(min(self.interval * 4, MAX_BACKOFF_SECONDS))
                continue
            except (OSError, ConnectionError, TimeoutError) as e:
                self.stats.sweeps_failed += 1
                logger.warning("Self-destruct sweep hit a network error: %s", e)
                await self._sleep(min(self.interval * 4, MAX_BACKOFF_SECONDS))
                continue
            except (ValueError, TypeError, KeyError, AttributeError) as e:
                self.stats.sweeps_failed += 1
                logger.error("Self-destruct sweep hit a data error: %s", e, exc_info=True)
                await self._sleep(min(self.interval * 4, MAX_BACKOFF_SECONDS))
                continue

            await self._sleep(self.interval)

    async def run_once(self) -> list[str]:
        """Run a single sweep and return the destroyed group ids."""
        if self._db_session is not None:
            destroyed = await self._sweep_with_session(self._db_session)
        else:
            with self._session_factory() as db:
                destroyed = await self._sweep_with_session(db)

        self.stats.sweeps_completed += 1
        self.stats.groups_destroyed += len(destroyed)
        self.stats.last_destroyed = destroyed
        return destroyed

    async def _sweep_with_session(self, db: Session) -> list[str]:
        service = SelfDestructService(SqlDocumentStore(db))
        return await service.sweep_all()
