"""System endpoints: manual sweeps and public configuration."""

from __future__ import annotations

from fastapi import APIRouter

from campfire_stage.api.v1.dependencies import (
    CurrentIdentityDep,
    SelfDestructDep,
    service_errors,
)
from campfire_stage.core.settings import settings
from campfire_stage.schemas.sweep import SweepResponse

router = APIRouter(prefix="/system", tags=["system"])


@router.post("/sweep", response_model=SweepResponse)
async def run_sweep(
    _identity: CurrentIdentityDep,
    self_destruct: SelfDestructDep,
) -> SweepResponse:
    """Run a self-destruct sweep over every active group now.

    Returns:
        The ids of the groups destroyed by this sweep.
    """
    with service_errors():
        destroyed = await self_destruct.sweep_all()
    return SweepResponse(destroyed=destroyed)


@router.get("/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes secrets and connection strings.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
            "debug": settings.debug,
        },
        "sweep": {
            "enabled": settings.sweep_enabled,
            "interval_seconds": settings.sweep_interval_seconds,
            "max_concurrency": settings.sweep_max_concurrency,
            "retry_inactive": settings.sweep_retry_inactive,
        },
        "store": {
            "message_delete_batch_size": settings.message_delete_batch_size,
        },
    }
