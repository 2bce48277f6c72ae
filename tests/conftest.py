"""Shared test fixtures.

The registry runs against in-memory SQLite, JW is replaced by an
``AsyncMock`` shaped like ``JWClient``, and bodies are signed with the same
``sign`` helper the receiver verifies against.
"""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from jw_webhooks.core.database import init_db, make_engine
from jw_webhooks.core.signatures import sign
from jw_webhooks.services.jw_client import JWClient, RemoteWebhook
from jw_webhooks.services.notifier import EventNotifier
from jw_webhooks.services.receiver import WebhookReceiver
from jw_webhooks.services.registry_store import RegistryStore

HOOK_ID = "hk_7Rq2xYpL"
HOOK_SECRET = "s3cr3t-from-jw"
RECEIVE_URL = "https://example.test/jw_webhooks/receive"


# ── Factory helpers ───────────────────────────────────────────────────────────


def make_event(
    webhook_id: str = HOOK_ID,
    event: str = "media_deleted",
    media_id: str = "42",
    site_id: str = "abc",
    event_time: int | str = 1700000000,
    **extra,
) -> dict:
    return {
        "webhook_id": webhook_id,
        "event": event,
        "media_id": media_id,
        "site_id": site_id,
        "event_time": event_time,
        **extra,
    }


def make_body(**fields) -> bytes:
    """JSON body as JW would put it on the wire."""
    return json.dumps(make_event(**fields)).encode("utf-8")


def signed_headers(body: bytes, secret: str = HOOK_SECRET) -> dict[str, str]:
    return {"Authorization": sign(body, secret), "Content-Type": "application/json"}


def make_remote(
    hook_id: str = HOOK_ID,
    secret: str | None = HOOK_SECRET,
    webhook_url: str = RECEIVE_URL,
    events: list[str] | None = None,
) -> RemoteWebhook:
    return RemoteWebhook(
        id=hook_id,
        webhook_url=webhook_url,
        events=events or ["media_deleted"],
        secret=secret,
    )


# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine) -> RegistryStore:
    return RegistryStore(engine)


@pytest.fixture
def known_hook(store):
    """A webhook recorded with ``HOOK_SECRET``."""
    return store.insert(HOOK_ID, HOOK_SECRET)


@pytest.fixture
def notify() -> MagicMock:
    return MagicMock(name="notify")


@pytest.fixture
def receiver(store, notify) -> WebhookReceiver:
    return WebhookReceiver(store, notify, max_body_bytes=4096)


@pytest.fixture
def notifier() -> EventNotifier:
    return EventNotifier()


@pytest.fixture
def jw() -> AsyncMock:
    """A JWClient stand-in that creates ``HOOK_ID`` and deletes successfully."""
    client = AsyncMock(spec=JWClient)
    client.create_webhook.return_value = make_remote()
    client.delete_webhook.return_value = True
    client.list_webhooks.return_value = []
    return client


EVENT_TIME = datetime.fromtimestamp(1700000000, tz=timezone.utc)
