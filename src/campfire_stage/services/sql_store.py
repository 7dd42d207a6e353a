"""SQLAlchemy-backed implementation of the document store interface."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from sqlalchemy import delete, func, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campfire_stage.core.settings import settings
from campfire_stage.db.session import Base
from campfire_stage.models import Group, Message
from campfire_stage.services.store import (
    GROUPS,
    MESSAGES,
    ArrayContains,
    ArrayRemove,
    ArrayUnion,
    BatchWriteError,
    Document,
    DocumentNotFoundError,
    DocumentStore,
    Filters,
    Increment,
    StoreError,
    StoreUnavailableError,
    new_document_id,
    split_order_by,
)

__all__ = ["SqlDocumentStore"]

logger = logging.getLogger(__name__)

COLLECTION_MODELS: dict[str, type[Base]] = {
    GROUPS: Group,
    MESSAGES: Message,
}


class SqlDocumentStore(DocumentStore):
    """Document store over the relational ``groups`` and ``messages`` tables.

    Each mutating call commits its own transaction. Failures are rolled back
    and re-raised as :class:`StoreError` subclasses so callers never see
    driver exceptions.
    """

    def __init__(self, session: Session, poll_interval: float | None = None) -> None:
        """Initialize the store with a SQLAlchemy session.

        Args:
            session: Session used for every operation issued by this store.
            poll_interval: Seconds between refreshes for ``subscribe``.
        """
        self.session = session
        self.poll_interval = (
            poll_interval if poll_interval is not None else settings.store_poll_interval_seconds
        )

    @staticmethod
    def _model(collection: str) -> type[Base]:
        try:
            return COLLECTION_MODELS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection!r}") from None

    @staticmethod
    def _to_document(obj: Base) -> Document:
        return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}

    @contextmanager
    def _translate_errors(
        self,
        action: str,
        error_cls: type[StoreError] = StoreUnavailableError,
    ) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.warning("Store %s failed: %s", action, exc)
            raise error_cls(f"{action} failed") from exc

    def _split_filters(
        self,
        model: type[Base],
        filters: Filters | None,
    ) -> tuple[list[Any], dict[str, ArrayContains]]:
        clauses: list[Any] = []
        contains: dict[str, ArrayContains] = {}
        for field, value in (filters or {}).items():
            if isinstance(value, ArrayContains):
                # JSON list membership is not portable across dialects.
                contains[field] = value
            else:
                clauses.append(getattr(model, field) == value)
        return clauses, contains

    def _select_documents(
        self,
        collection: str,
        filters: Filters | None,
        order_by: str | None = None,
    ) -> list[Document]:
        model = self._model(collection)
        clauses, contains = self._split_filters(model, filters)
        stmt = select(model).where(*clauses)
        field, descending = split_order_by(order_by)
        if field:
            column = getattr(model, field)
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        rows = self.session.execute(stmt).scalars().all()
        documents = [self._to_document(row) for row in rows]
        if contains:
            documents = [
                doc
                for doc in documents
                if all(op.matches(doc.get(name)) for name, op in contains.items())
            ]
        return documents

    async def query(
        self,
        collection: str,
        filters: Filters | None = None,
        order_by: str | None = None,
    ) -> list[Document]:
        with self._translate_errors(f"query {collection}"):
            # Pick up rows written by other sessions since the last read.
            self.session.expire_all()
            return self._select_documents(collection, filters, order_by)

    async def count(self, collection: str, filters: Filters | None = None) -> int:
        model = self._model(collection)
        with self._translate_errors(f"count {collection}"):
            clauses, contains = self._split_filters(model, filters)
            if contains:
                return len(self._select_documents(collection, filters))
            stmt = select(func.count()).select_from(model).where(*clauses)
            return int(self.session.execute(stmt).scalar_one())

    async def get_by_id(self, collection: str, document_id: str) -> Document | None:
        model = self._model(collection)
        with self._translate_errors(f"get {collection}/{document_id}"):
            obj = self.session.get(model, document_id, populate_existing=True)
            return self._to_document(obj) if obj is not None else None

    async def create(self, collection: str, document: Mapping[str, Any]) -> str:
        model = self._model(collection)
        values = dict(document)
        document_id = values.get("id") or new_document_id()
        values["id"] = document_id
        with self._translate_errors(f"create {collection}"):
            self.session.add(model(**values))
            self.session.commit()
        logger.debug("Created %s/%s", collection, document_id)
        return document_id

    async def update(
        self,
        collection: str,
        document_id: str,
        deltas: Mapping[str, Any],
    ) -> None:
        model = self._model(collection)
        with self._translate_errors(f"update {collection}/{document_id}"):
            obj = self.session.get(model, document_id)
            if obj is None:
                raise DocumentNotFoundError(collection, document_id)
            for field, value in deltas.items():
                if isinstance(value, Increment):
                    # Evaluated by the database at flush time.
                    setattr(obj, field, getattr(model, field) + value.amount)
                elif isinstance(value, (ArrayUnion, ArrayRemove)):
                    setattr(obj, field, value.apply(getattr(obj, field)))
                else:
                    setattr(obj, field, value)
            self.session.commit()

    async def delete(self, collection: str, document_id: str) -> None:
        model = self._model(collection)
        with self._translate_errors(f"delete {collection}/{document_id}"):
            obj = self.session.get(model, document_id)
            if obj is None:
                return
            self.session.delete(obj)
            self.session.commit()

    async def batch_delete(self, collection: str, document_ids: Iterable[str]) -> None:
        model = self._model(collection)
        ids = list(document_ids)
        if not ids:
            return
        with self._translate_errors(f"batch delete {len(ids)} {collection}", BatchWriteError):
            self.session.execute(delete(model).where(model.id.in_(ids)))
            self.session.commit()
        logger.debug("Deleted %d documents from %s", len(ids), collection)
