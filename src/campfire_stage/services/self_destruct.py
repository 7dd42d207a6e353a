"""Self-destruct engine: evaluates group rules and tears groups down.

The engine has three pieces:

- the rule evaluator (:func:`campfire_stage.services.rules.should_destroy`),
- the destruction executor (:meth:`SelfDestructService.destroy`), which marks
  a group inactive and deletes its messages in atomic batches,
- the sweep coordinator (:meth:`SelfDestructService.sweep_all` and
  :meth:`SelfDestructService.sweep_one`).

Destruction is two separate store writes and is not transactional across
them. Every step is idempotent, so a group left inactive with leftover
messages is finished by a later sweep or on-demand check.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

from campfire_stage.core.settings import settings
from campfire_stage.db.time import now_millis
from campfire_stage.services.rules import GroupState, should_destroy
from campfire_stage.services.store import (
    GROUPS,
    MESSAGES,
    DocumentNotFoundError,
    DocumentStore,
    StoreError,
)

# Configure logger for this module
logger = logging.getLogger(__name__)

DestroyListener = Callable[[str], None]


class SweepError(RuntimeError):
    """Raised when a sweep cannot list the groups it should evaluate."""


class SelfDestructService:
    """Evaluate self-destruct rules and destroy groups that reached them."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        clock: Callable[[], int] = now_millis,
        max_concurrency: int | None = None,
        delete_batch_size: int | None = None,
        retry_inactive: bool | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            store: Document store holding the ``groups`` and ``messages`` collections.
            clock: Returns the current time in epoch millis.
            max_concurrency: Upper bound on groups processed at once during a sweep.
            delete_batch_size: Maximum message ids per atomic delete batch.
            retry_inactive: Whether sweeps also finish partially destroyed groups.
        """
        self.store = store
        self.clock = clock
        self.max_concurrency = max(
            1, max_concurrency if max_concurrency is not None else settings.sweep_max_concurrency
        )
        self.delete_batch_size = max(
            1,
            delete_batch_size
            if delete_batch_size is not None
            else settings.message_delete_batch_size,
        )
        self.retry_inactive = (
            retry_inactive if retry_inactive is not None else settings.sweep_retry_inactive
        )
        self._listeners: list[DestroyListener] = []

    def add_listener(self, listener: DestroyListener) -> None:
        """Register a callback invoked with the id of every destroyed group."""
        self._listeners.append(listener)

    def remove_listener(self, listener: DestroyListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, group_id: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(group_id)
            except Exception:
                logger.exception("Destroy listener failed for group %s", group_id)

    async def count_messages(self, group_id: str) -> int:
        """Return the live number of messages stored for ``group_id``."""
        return await self.store.count(MESSAGES, {"group_id": group_id})

    def evaluate(self, group: Mapping[str, Any], message_count: int) -> bool:
        """Apply the rule evaluator to a group document at the current time."""
        return should_destroy(GroupState.from_document(group), message_count, self.clock())

    async def destroy(self, group_id: str) -> None:
        """Mark ``group_id`` inactive and delete all of its messages.

        A group that no longer exists is skipped. Running this again on an
        already destroyed group changes nothing.

        Raises:
            StoreError: If marking the group or deleting a batch fails.
        """
        try:
            await self.store.update(
                GROUPS, group_id, {"is_active": False, "purge_pending": True}
            )
        except DocumentNotFoundError:
            logger.debug("Group %s vanished before destruction", group_id)

        await self.purge_messages(group_id)
        logger.info("Destroyed group %s", group_id)

    async def purge_messages(self, group_id: str) -> int:
        """Delete every message of ``group_id`` in atomic chunks; return the count.

        The group's ``purge_pending`` flag is cleared only after the last
        chunk succeeded, so a failed purge is picked up by a later sweep.
        """
        messages = await self.store.query(MESSAGES, {"group_id": group_id})
        ids = [message["id"] for message in messages]
        for start in range(0, len(ids), self.delete_batch_size):
            await self.store.batch_delete(MESSAGES, ids[start : start + self.delete_batch_size])

        try:
            await self.store.update(GROUPS, group_id, {"purge_pending": False})
        except DocumentNotFoundError:
            pass
        return len(ids)

    async def sweep_all(self) -> list[str]:
        """Evaluate every active group and destroy the ones whose rule triggered.

        Per-group failures are logged and skipped.

        Returns:
            Ids of the groups destroyed during this sweep.

        Raises:
            SweepError: If the active groups cannot be listed.
        """
        try:
            groups = await self.store.query(GROUPS, {"is_active": True})
        except StoreError as exc:
            raise SweepError("Could not list active groups") from exc

        semaphore = asyncio.Semaphore(self.max_concurrency)
        results = await asyncio.gather(
            *(self._sweep_group(group, semaphore) for group in groups)
        )
        destroyed = [group_id for group_id in results if group_id is not None]

        if self.retry_inactive:
            await self._finish_pending_destructions(semaphore)

        logger.info(
            "Self-destruct sweep checked %d groups, destroyed %d",
            len(groups),
            len(destroyed),
        )
        return destroyed

    async def _sweep_group(
        self,
        group: Mapping[str, Any],
        semaphore: asyncio.Semaphore,
    ) -> str | None:
        group_id = group["id"]
        async with semaphore:
            try:
                message_count = await self.count_messages(group_id)
                if not self.evaluate(group, message_count):
                    return None
                await self.destroy(group_id)
            except StoreError as exc:
                logger.warning("Failed to process group %s during sweep: %s", group_id, exc)
                return None
            except Exception:
                # Any other failure stays scoped to this group.
                logger.exception("Unexpected error processing group %s during sweep", group_id)
                return None
        self._notify(group_id)
        return group_id

    async def _finish_pending_destructions(self, semaphore: asyncio.Semaphore) -> None:
        # Only groups whose purge never completed; cleaned groups are not revisited.
        try:
            pending = await self.store.query(GROUPS, {"is_active": False, "purge_pending": True})
        except StoreError as exc:
            logger.warning("Could not list partially destroyed groups: %s", exc)
            return

        async def finish(group_id: str) -> None:
            async with semaphore:
                try:
                    purged = await self.purge_messages(group_id)
                except StoreError as exc:
                    logger.warning("Failed to finish destruction of group %s: %s", group_id, exc)
                    return
                except Exception:
                    logger.exception("Unexpected error finishing destruction of group %s", group_id)
                    return
            logger.info("Purged %d leftover messages of inactive group %s", purged, group_id)

        await asyncio.gather(*(finish(group["id"]) for group in pending))

    async def sweep_one(self, group_id: str) -> bool:
        """Evaluate a single group right away and destroy it if its rule triggered.

        Used right after an event that may trigger destruction (a message was
        sent, a group was opened) instead of waiting for the periodic sweep.
        A group that has already been destroyed but still owns messages is
        cleaned up.

        Returns:
            True if the group was destroyed by this call.

        Raises:
            StoreError: If reading the group or its messages fails.
        """
        group = await self.store.get_by_id(GROUPS, group_id)
        if group is None:
            return False

        message_count = await self.count_messages(group_id)
        if not group.get("is_active", True):
            if message_count or group.get("purge_pending"):
                await self.purge_messages(group_id)
            return False

        if not self.evaluate(group, message_count):
            return False

        await self.destroy(group_id)
        self._notify(group_id)
        return True
