"""Group management on top of the document store."""

from __future__ import annotations

import logging
from typing import Any

from campfire_stage.db.time import now_millis
from campfire_stage.services.rules import SelfDestructRule
from campfire_stage.services.self_destruct import SelfDestructService
from campfire_stage.services.store import (
    GROUPS,
    ArrayContains,
    ArrayRemove,
    ArrayUnion,
    Document,
    DocumentNotFoundError,
    DocumentStore,
    Increment,
)

logger = logging.getLogger(__name__)


class GroupNotFoundError(LookupError):
    """Raised when a group id does not resolve to a stored group."""


class GroupInactiveError(RuntimeError):
    """Raised when an operation requires an active group."""


class PermissionDeniedError(PermissionError):
    """Raised when the caller may not perform an operation on a resource."""


class GroupService:
    """Create, read, update and delete groups and their membership."""

    def __init__(self, store: DocumentStore, self_destruct: SelfDestructService | None = None) -> None:
        self.store = store
        self.self_destruct = self_destruct or SelfDestructService(store)

    async def create_group(
        self,
        *,
        name: str,
        created_by: str,
        description: str = "",
        rule: SelfDestructRule | None = None,
        created_at: int | None = None,
        last_activity: int | None = None,
    ) -> Document:
        """Create a group with its creator as the only member."""
        now = now_millis()
        document: dict[str, Any] = {
            "name": name,
            "description": description,
            "created_by": created_by,
            "member_ids": [created_by],
            "created_at": created_at if created_at is not None else now,
            "last_activity": last_activity if last_activity is not None else now,
            "message_count": 0,
            "is_active": True,
            "purge_pending": False,
            **(rule or SelfDestructRule()).to_document(),
        }
        group_id = await self.store.create(GROUPS, document)
        logger.info("Created group %s for user %s", group_id, created_by)
        return {**document, "id": group_id}

    async def get_group(self, group_id: str) -> Document | None:
        return await self.store.get_by_id(GROUPS, group_id)

    async def require_group(self, group_id: str) -> Document:
        group = await self.get_group(group_id)
        if group is None:
            raise GroupNotFoundError(group_id)
        return group

    async def list_user_groups(self, user_id: str) -> list[Document]:
        """Return the active groups ``user_id`` belongs to, most recently active first."""
        return await self.store.query(
            GROUPS,
            {"member_ids": ArrayContains(user_id), "is_active": True},
            order_by="-last_activity",
        )

    async def list_active_groups(self) -> list[Document]:
        return await self.store.query(GROUPS, {"is_active": True}, order_by="-last_activity")

    async def update_group(
        self,
        group_id: str,
        *,
        editor_id: str,
        name: str | None = None,
        description: str | None = None,
        rule: SelfDestructRule | None = None,
    ) -> Document:
        """Change a group's name, description or rule; only its creator may.

        Passing ``rule`` replaces all three thresholds.
        """
        group = await self.require_group(group_id)
        if group["created_by"] != editor_id:
            raise PermissionDeniedError("Only the group creator can edit the group")
        if not group["is_active"]:
            raise GroupInactiveError(group_id)

        deltas: dict[str, Any] = {}
        if name is not None:
            deltas["name"] = name
        if description is not None:
            deltas["description"] = description
        if rule is not None:
            deltas.update(rule.to_document())
        if deltas:
            await self._update(group_id, deltas)
        return await self.require_group(group_id)

    async def delete_group(self, group_id: str, *, requester_id: str) -> None:
        """Delete a group and all of its messages; only its creator may."""
        group = await self.require_group(group_id)
        if group["created_by"] != requester_id:
            raise PermissionDeniedError("Only the group creator can delete the group")

        # Messages go first so none outlives the group document.
        await self.self_destruct.destroy(group_id)
        await self.store.delete(GROUPS, group_id)
        logger.info("Deleted group %s", group_id)

    async def join_group(self, group_id: str, user_id: str) -> None:
        group = await self.require_group(group_id)
        if not group["is_active"]:
            raise GroupInactiveError(group_id)
        await self._update(group_id, {"member_ids": ArrayUnion(user_id)})

    async def leave_group(self, group_id: str, user_id: str) -> None:
        group = await self.require_group(group_id)
        if user_id not in group["member_ids"]:
            raise PermissionDeniedError("Not a member of this group")
        await self._update(group_id, {"member_ids": ArrayRemove(user_id)})

    async def record_message_sent(self, group_id: str, at: int | None = None) -> None:
        """Bump the message counter and the last activity timestamp."""
        await self._update(
            group_id,
            {
                "message_count": Increment(1),
                "last_activity": at if at is not None else now_millis(),
            },
        )

    async def _update(self, group_id: str, deltas: dict[str, Any]) -> None:
        try:
            await self.store.update(GROUPS, group_id, deltas)
        except DocumentNotFoundError as exc:
            raise GroupNotFoundError(group_id) from exc
