# src/campfire_stage/api/v1/endpoints/messages.py
"""Message-related endpoints for the Campfire API."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from campfire_stage.api.v1.dependencies import (
    CurrentIdentityDep,
    GroupServiceDep,
    MessageServiceDep,
    service_errors,
)
from campfire_stage.schemas.message import MessageCreate, MessageResponse, MessageUpdate

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("/", response_model=list[MessageResponse])
async def list_messages(
    group_id: str,
    _identity: CurrentIdentityDep,
    groups: GroupServiceDep,
    messages: MessageServiceDep,
) -> list[MessageResponse]:
    """List a group's messages, oldest first."""
    with service_errors():
        await groups.require_group(group_id)
        documents = await messages.list_group_messages(group_id)
    return [MessageResponse.model_validate(doc) for doc in documents]


@router.post("/", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    payload: MessageCreate,
    identity: CurrentIdentityDep,
    messages: MessageServiceDep,
) -> MessageResponse:
    """Send a message; the group's self-destruct rule is re-checked right after."""
    with service_errors():
        document = await messages.send_message(
            payload.group_id,
            sender_id=identity.user_id,
            sender_name=identity.display_name,
            content=payload.content,
        )
    return MessageResponse.model_validate(document)


@router.patch("/{message_id}", response_model=MessageResponse)
async def edit_message(
    message_id: str,
    payload: MessageUpdate,
    identity: CurrentIdentityDep,
    messages: MessageServiceDep,
) -> MessageResponse:
    """Edit one of the caller's messages."""
    with service_errors():
        document = await messages.edit_message(
            message_id,
            editor_id=identity.user_id,
            content=payload.content,
        )
    return MessageResponse.model_validate(document)


@router.delete(
    "/{message_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_message(
    message_id: str,
    identity: CurrentIdentityDep,
    messages: MessageServiceDep,
) -> Response:
    """Delete one of the caller's messages."""
    with service_errors():
        await messages.delete_message(message_id, requester_id=identity.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
