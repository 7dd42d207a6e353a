"""Message posting and editing for groups."""

from __future__ import annotations

import logging

from campfire_stage.db.time import now_millis
from campfire_stage.services.group_service import (
    GroupInactiveError,
    GroupService,
    PermissionDeniedError,
)
from campfire_stage.services.self_destruct import SelfDestructService
from campfire_stage.services.store import (
    MESSAGES,
    Document,
    DocumentNotFoundError,
    DocumentStore,
    StoreError,
)

logger = logging.getLogger(__name__)


class MessageNotFoundError(LookupError):
    """Raised when a message id does not resolve to a stored message."""


class MessageService:
    """Send, edit, delete and list group messages."""

    def __init__(
        self,
        store: DocumentStore,
        groups: GroupService | None = None,
        self_destruct: SelfDestructService | None = None,
    ) -> None:
        self.store = store
        self.self_destruct = self_destruct or SelfDestructService(store)
        self.groups = groups or GroupService(store, self.self_destruct)

    async def send_message(
        self,
        group_id: str,
        *,
        sender_id: str,
        sender_name: str,
        content: str,
    ) -> Document:
        """Post a message, update the group's counters and re-check its rule.

        The self-destruct check runs right after the counters are updated, so
        the message that reaches a cap destroys the group immediately. A failed
        check is logged; the periodic sweep picks the group up later.

        Raises:
            GroupNotFoundError: The group does not exist.
            GroupInactiveError: The group has been destroyed.
            PermissionDeniedError: The sender is not a member.
        """
        group = await self.groups.require_group(group_id)
        if not group["is_active"]:
            raise GroupInactiveError(group_id)
        if sender_id not in group["member_ids"]:
            raise PermissionDeniedError("Only group members can send messages")

        timestamp = now_millis()
        document = {
            "group_id": group_id,
            "sender_id": sender_id,
            "sender_name": sender_name,
            "content": content.strip(),
            "timestamp": timestamp,
            "is_edited": False,
            "edited_at": None,
        }
        message_id = await self.store.create(MESSAGES, document)
        await self.groups.record_message_sent(group_id, timestamp)

        try:
            await self.self_destruct.sweep_one(group_id)
        except StoreError as exc:
            logger.warning("Self-destruct check after send failed for group %s: %s", group_id, exc)

        return {**document, "id": message_id}

    async def get_message(self, message_id: str) -> Document:
        message = await self.store.get_by_id(MESSAGES, message_id)
        if message is None:
            raise MessageNotFoundError(message_id)
        return message

    async def edit_message(self, message_id: str, *, editor_id: str, content: str) -> Document:
        """Replace a message's content and flag it as edited; sender only."""
        message = await self.get_message(message_id)
        if message["sender_id"] != editor_id:
            raise PermissionDeniedError("Only the sender can edit this message")
        try:
            await self.store.update(
                MESSAGES,
                message_id,
                {"content": content.strip(), "is_edited": True, "edited_at": now_millis()},
            )
        except DocumentNotFoundError as exc:
            raise MessageNotFoundError(message_id) from exc
        return await self.get_message(message_id)

    async def delete_message(self, message_id: str, *, requester_id: str) -> None:
        message = await self.get_message(message_id)
        if message["sender_id"] != requester_id:
            raise PermissionDeniedError("Only the sender can delete this message")
        await self.store.delete(MESSAGES, message_id)

    async def list_group_messages(self, group_id: str) -> list[Document]:
        """Return a group's messages, oldest first."""
        return await self.store.query(MESSAGES, {"group_id": group_id}, order_by="timestamp")

    async def count_messages(self, group_id: str) -> int:
        return await self.self_destruct.count_messages(group_id)
