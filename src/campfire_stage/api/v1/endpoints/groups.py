# src/campfire_stage/api/v1/endpoints/groups.py
"""Group-related endpoints for the Campfire API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status

from campfire_stage.api.v1.dependencies import (
    CurrentIdentityDep,
    GroupServiceDep,
    SelfDestructDep,
    service_errors,
)
from campfire_stage.schemas.group import GroupCreate, GroupResponse, GroupUpdate
from campfire_stage.schemas.sweep import GroupCheckResponse
from campfire_stage.services.store import StoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/groups", tags=["groups"])


@router.get("/", response_model=list[GroupResponse])
async def list_my_groups(
    identity: CurrentIdentityDep,
    groups: GroupServiceDep,
) -> list[GroupResponse]:
    """List the active groups the caller belongs to."""
    with service_errors():
        documents = await groups.list_user_groups(identity.user_id)
    return [GroupResponse.from_document(doc) for doc in documents]


@router.post("/", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    payload: GroupCreate,
    identity: CurrentIdentityDep,
    groups: GroupServiceDep,
) -> GroupResponse:
    """Create a group with an optional self-destruct rule."""
    with service_errors():
        document = await groups.create_group(
            name=payload.name.strip(),
            description=payload.description.strip(),
            created_by=identity.user_id,
            rule=payload.self_destruct_rule.to_rule(),
        )
    return GroupResponse.from_document(document)


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(
    group_id: str,
    _identity: CurrentIdentityDep,
    groups: GroupServiceDep,
    self_destruct: SelfDestructDep,
) -> GroupResponse:
    """Open a group, destroying it first if its rule has triggered."""
    try:
        await self_destruct.sweep_one(group_id)
    except StoreError as exc:
        logger.warning("Self-destruct check on open failed for group %s: %s", group_id, exc)

    with service_errors():
        document = await groups.require_group(group_id)
    return GroupResponse.from_document(document)


@router.put("/{group_id}", response_model=GroupResponse)
async def update_group(
    group_id: str,
    payload: GroupUpdate,
    identity: CurrentIdentityDep,
    groups: GroupServiceDep,
) -> GroupResponse:
    """Edit a group's name, description or self-destruct rule (creator only)."""
    with service_errors():
        document = await groups.update_group(
            group_id,
            editor_id=identity.user_id,
            name=payload.name.strip() if payload.name is not None else None,
            description=payload.description,
            rule=payload.self_destruct_rule.to_rule() if payload.self_destruct_rule else None,
        )
    return GroupResponse.from_document(document)


@router.delete(
    "/{group_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_group(
    group_id: str,
    identity: CurrentIdentityDep,
    groups: GroupServiceDep,
) -> Response:
    """Delete a group and all of its messages (creator only)."""
    with service_errors():
        await groups.delete_group(group_id, requester_id=identity.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{group_id}/join", status_code=status.HTTP_201_CREATED)
async def join_group(
    group_id: str,
    identity: CurrentIdentityDep,
    groups: GroupServiceDep,
) -> dict[str, str]:
    """Join an active group."""
    with service_errors():
        await groups.join_group(group_id, identity.user_id)
    return {"status": "joined"}


@router.delete(
    "/{group_id}/leave",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def leave_group(
    group_id: str,
    identity: CurrentIdentityDep,
    groups: GroupServiceDep,
) -> Response:
    """Leave a group."""
    with service_errors():
        await groups.leave_group(group_id, identity.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{group_id}/self-destruct/check", response_model=GroupCheckResponse)
async def check_group(
    group_id: str,
    _identity: CurrentIdentityDep,
    groups: GroupServiceDep,
    self_destruct: SelfDestructDep,
) -> GroupCheckResponse:
    """Evaluate one group's rule now instead of waiting for the next sweep."""
    with service_errors():
        await groups.require_group(group_id)
        destroyed = await self_destruct.sweep_one(group_id)
    return GroupCheckResponse(group_id=group_id, destroyed=destroyed)
