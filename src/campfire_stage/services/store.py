"""Document store interface consumed by the Campfire services.

Collections hold flat documents (plain dicts) keyed by an opaque string id
assigned on creation. Besides plain values, ``update`` accepts the field
operators defined here for concurrent-safe counter and membership changes,
and ``query``/``count`` filters accept :class:`ArrayContains` for list fields.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

GROUPS = "groups"
MESSAGES = "messages"

Document = dict[str, Any]
Filters = Mapping[str, Any]

DEFAULT_POLL_INTERVAL_SECONDS = 1.0


class StoreError(RuntimeError):
    """Base exception raised for document store failures."""


class StoreUnavailableError(StoreError):
    """Raised for transient failures (connectivity, timeouts, permissions)."""


class DocumentNotFoundError(StoreError):
    """Raised when an update targets a document that does not exist."""

    def __init__(self, collection: str, document_id: str) -> None:
        super().__init__(f"{collection}/{document_id} not found")
        self.collection = collection
        self.document_id = document_id


class BatchWriteError(StoreError):
    """Raised when an atomic batch fails; none of its writes were applied."""


@dataclass(frozen=True)
class Increment:
    """Add ``amount`` to a numeric field atomically."""

    amount: int = 1


class ArrayUnion:
    """Add values to a list field, skipping ones already present."""

    def __init__(self, *values: Any) -> None:
        self.values = values

    def apply(self, current: Iterable[Any] | None) -> list[Any]:
        result = list(current or [])
        for value in self.values:
            if value not in result:
                result.append(value)
        return result


class ArrayRemove:
    """Remove every occurrence of the given values from a list field."""

    def __init__(self, *values: Any) -> None:
        self.values = values

    def apply(self, current: Iterable[Any] | None) -> list[Any]:
        return [item for item in (current or []) if item not in self.values]


@dataclass(frozen=True)
class ArrayContains:
    """Filter matching documents whose list field contains ``value``."""

    value: Any

    def matches(self, current: Iterable[Any] | None) -> bool:
        return self.value in (current or [])


def new_document_id() -> str:
    """Return a 20-character URL-safe id, the shape document stores assign."""
    return secrets.token_urlsafe(15)


def split_order_by(order_by: str | None) -> tuple[str | None, bool]:
    """Parse ``"field"`` / ``"-field"`` into ``(field, descending)``."""
    if not order_by:
        return None, False
    if order_by.startswith("-"):
        return order_by[1:], True
    return order_by, False


class DocumentStore(ABC):
    """Operations the services need from the backing document store.

    Every method is a suspension point. Implementations must make
    ``batch_delete`` all-or-nothing and ``delete`` idempotent.
    """

    poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Filters | None = None,
        order_by: str | None = None,
    ) -> list[Document]:
        """Return documents matching ``filters``, optionally ordered."""

    @abstractmethod
    async def count(self, collection: str, filters: Filters | None = None) -> int:
        """Return the number of documents matching ``filters``."""

    @abstractmethod
    async def get_by_id(self, collection: str, document_id: str) -> Document | None:
        """Return a single document or ``None`` when absent."""

    @abstractmethod
    async def create(self, collection: str, document: Mapping[str, Any]) -> str:
        """Insert ``document`` and return its assigned id."""

    @abstractmethod
    async def update(
        self,
        collection: str,
        document_id: str,
        deltas: Mapping[str, Any],
    ) -> None:
        """Apply field deltas; raises :class:`DocumentNotFoundError` if absent."""

    @abstractmethod
    async def delete(self, collection: str, document_id: str) -> None:
        """Delete a document; deleting a missing document is a no-op."""

    @abstractmethod
    async def batch_delete(self, collection: str, document_ids: Iterable[str]) -> None:
        """Delete all ``document_ids`` atomically; raises :class:`BatchWriteError`."""

    async def subscribe(
        self,
        collection: str,
        filters: Filters | None = None,
        order_by: str | None = None,
    ) -> AsyncIterator[list[Document]]:
        """Yield the result set each time it changes.

        The first snapshot is yielded immediately. Changes are detected by
        polling every ``poll_interval`` seconds; closing the iterator (or
        cancelling the consuming task) ends the subscription.
        """
        previous: list[Document] | None = None
        while True:
            try:
                snapshot = await self.query(collection, filters, order_by)
            except StoreError as exc:
                logger.warning("Subscription to %s failed to refresh: %s", collection, exc)
            else:
                if snapshot != previous:
                    previous = snapshot
                    yield snapshot
            await asyncio.sleep(self.poll_interval)
