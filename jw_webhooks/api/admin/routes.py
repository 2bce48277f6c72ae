"""Admin endpoints for managing the webhooks registered at JW.

Protected by ADMIN_SECRET.  Secrets of recorded webhooks are never returned.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, Request, status

from jw_webhooks.core.auth import require_admin
from jw_webhooks.models.hook_record import HookRecord
from jw_webhooks.models.schemas import (
    HookListResponse,
    HookRecordResponse,
    OrphanListResponse,
    SyncResponse,
)
from jw_webhooks.services.notifier import EventNotifier
from jw_webhooks.services.registration import RegistrationManager

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _manager(request: Request) -> RegistrationManager:
    return request.app.state.registration


def _to_response(record: HookRecord) -> HookRecordResponse:
    return HookRecordResponse(id=record.id, created=record.created)


@router.get(
    "/webhooks",
    response_model=HookListResponse,
    summary="List locally recorded webhooks",
)
async def list_webhooks(request: Request) -> HookListResponse:
    records = await asyncio.to_thread(request.app.state.store.list)
    hooks = [_to_response(r) for r in sorted(records, key=lambda r: r.created)]
    return HookListResponse(webhooks=hooks, total=len(hooks))


@router.post(
    "/webhooks/sync",
    response_model=SyncResponse,
    summary="Re-register with JW for every subscribed event",
    description=(
        "Deletes every recorded webhook at JW and locally, then creates one "
        "webhook covering the events listeners are subscribed to."
    ),
)
async def sync_webhooks(
    request: Request,
    manager: RegistrationManager = Depends(_manager),
) -> SyncResponse:
    notifier: EventNotifier = request.app.state.notifier
    events = notifier.wanted_events()
    record = await manager.sync(events)
    return SyncResponse(
        events=sorted(events),
        webhook=_to_response(record) if record is not None else None,
    )


@router.get(
    "/webhooks/orphans",
    response_model=OrphanListResponse,
    summary="List JW webhooks that have no local secret",
    description=(
        "Webhooks at JW pointing at this service whose secret was never recorded. "
        "Their publish requests cannot be authenticated; delete them."
    ),
)
async def list_orphans(manager: RegistrationManager = Depends(_manager)) -> OrphanListResponse:
    orphans = await manager.find_orphans()
    return OrphanListResponse(webhook_ids=orphans, total=len(orphans))


@router.delete(
    "/webhooks/{webhook_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unregister a webhook",
    description="Deletes the webhook at JW and its local record.  Repeating the call is a no-op.",
)
async def delete_webhook(
    webhook_id: str,
    manager: RegistrationManager = Depends(_manager),
) -> None:
    await manager.unregister(webhook_id)
