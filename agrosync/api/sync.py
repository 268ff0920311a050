"""
Sync API Router
Manual sync trigger, status, queue inspection and connectivity control
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from agrosync.api.dependencies import verify_api_key, get_services
from agrosync.api.schemas import (
    SyncResultResponse, SyncStatusResponse, QueueItemResponse,
    PullRequest, PullResponse, ConnectivityRequest, ConnectivityResponse
)
from agrosync.core.connectivity import StaticConnectivitySignal
from agrosync.core.services import SyncServices

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=SyncResultResponse)
async def sync_now(
    authenticated: bool = Depends(verify_api_key),
    services: SyncServices = Depends(get_services)
):
    """Trigger a drain pass without waiting for a connectivity event"""
    logger.info("Manual sync triggered")
    result = await services.monitor.sync_now()
    return SyncResultResponse(**result.to_dict())


@router.get("/status", response_model=SyncStatusResponse)
async def get_sync_status(
    authenticated: bool = Depends(verify_api_key),
    services: SyncServices = Depends(get_services)
):
    sync_status = await services.engine.get_sync_status()
    return SyncStatusResponse(**sync_status.to_dict())


@router.get("/queue", response_model=List[QueueItemResponse])
async def list_queue(
    authenticated: bool = Depends(verify_api_key),
    services: SyncServices = Depends(get_services)
):
    """Pending operations in the order they will be applied"""
    items = await services.queue.drain()
    return [QueueItemResponse(**item.to_dict()) for item in items]


@router.post("/pull", response_model=PullResponse)
async def pull_from_remote(
    pull_request: Optional[PullRequest] = None,
    authenticated: bool = Depends(verify_api_key),
    services: SyncServices = Depends(get_services)
):
    """Refresh local copies from the remote store"""
    entity_types = pull_request.entity_types if pull_request else None
    result = await services.engine.pull_from_remote(entity_types)
    return PullResponse(**result.to_dict())


@router.post("/connectivity", response_model=ConnectivityResponse)
async def set_connectivity(
    connectivity: ConnectivityRequest,
    authenticated: bool = Depends(verify_api_key),
    services: SyncServices = Depends(get_services)
):
    """Report an online/offline transition from the client platform"""
    if not isinstance(services.signal, StaticConnectivitySignal):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Connectivity is probed automatically and cannot be set"
        )

    services.signal.set_online(connectivity.online)
    return ConnectivityResponse(online=services.signal.is_online())
