from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# ── Inbound events ────────────────────────────────────────────────────────────


KNOWN_EVENTS: frozenset[str] = frozenset(
    {
        "media_available",
        "conversions_complete",
        "media_updated",
        "media_reuploaded",
        "media_deleted",
    }
)


class WebhookEventBody(BaseModel):
    """Body of a JW publish request, decoded only after its signature checks out."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    webhook_id: str = Field(min_length=1, description="ID of the webhook that fired")
    event: str = Field(min_length=1, description="Event tag, e.g. media_deleted")
    media_id: str = Field(description="ID of the media the event is about")
    site_id: str = Field(description="JW property the media belongs to")
    event_time: datetime = Field(description="When JW says the event happened")


# ── Admin ─────────────────────────────────────────────────────────────────────


class HookRecordResponse(BaseModel):
    id: str
    created: datetime


class HookListResponse(BaseModel):
    webhooks: list[HookRecordResponse]
    total: int


class SyncResponse(BaseModel):
    events: list[str]
    webhook: HookRecordResponse | None = None


class OrphanListResponse(BaseModel):
    webhook_ids: list[str]
    total: int
