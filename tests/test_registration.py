"""Tests for the webhook registration lifecycle."""

from unittest.mock import patch

import pytest

from jw_webhooks.services.jw_client import JWPlatformError
from jw_webhooks.services.registration import (
    InconsistentRegistrationError,
    RegistrationError,
    RegistrationManager,
    build_receive_url,
)
from jw_webhooks.services.registry_store import RegistryError
from tests.conftest import HOOK_ID, HOOK_SECRET, RECEIVE_URL, make_remote


@pytest.fixture
def manager(jw, store) -> RegistrationManager:
    return RegistrationManager(jw, store, receive_url=RECEIVE_URL, webhook_name="test-hooks")


class TestBuildReceiveUrl:
    def test_joins_base_and_path(self):
        url = build_receive_url("https://example.test", "jw_webhooks/receive")
        assert url == "https://example.test/jw_webhooks/receive"

    def test_upgrades_to_https(self):
        url = build_receive_url("http://example.test/", "/jw_webhooks/receive/")
        assert url == "https://example.test/jw_webhooks/receive"

    def test_keeps_base_path(self):
        url = build_receive_url("https://example.test/site", "hooks")
        assert url == "https://example.test/site/hooks"


class TestRegister:
    @pytest.mark.asyncio
    async def test_records_remote_secret(self, manager, jw, store):
        record = await manager.register({"media_deleted", "media_updated"})

        assert record.id == HOOK_ID
        assert record.secret == HOOK_SECRET
        assert store.get(HOOK_ID) == record

        args, kwargs = jw.create_webhook.call_args
        assert args == (["media_deleted", "media_updated"], RECEIVE_URL)
        assert kwargs["name"] == "test-hooks"

    @pytest.mark.asyncio
    async def test_empty_events_rejected(self, manager, jw):
        with pytest.raises(ValueError):
            await manager.register([])
        jw.create_webhook.assert_not_called()

    @pytest.mark.asyncio
    async def test_remote_failure_records_nothing(self, manager, jw, store):
        jw.create_webhook.side_effect = JWPlatformError(401, "bad credentials")
        with pytest.raises(RegistrationError) as exc_info:
            await manager.register({"media_deleted"})
        assert not isinstance(exc_info.value, InconsistentRegistrationError)
        assert store.list() == set()

    @pytest.mark.asyncio
    async def test_local_failure_after_remote_success_is_fatal(self, manager, store, caplog):
        with patch.object(store, "insert", side_effect=RegistryError("disk full")):
            with pytest.raises(InconsistentRegistrationError) as exc_info:
                await manager.register({"media_deleted"})

        assert exc_info.value.webhook_id == HOOK_ID
        assert any(r.levelname == "CRITICAL" for r in caplog.records)

    @pytest.mark.asyncio
    async def test_duplicate_id_from_remote_is_fatal(self, manager, store):
        store.insert(HOOK_ID, "older-secret")
        with pytest.raises(InconsistentRegistrationError):
            await manager.register({"media_deleted"})
        assert store.get(HOOK_ID).secret == "older-secret"


class TestUnregister:
    @pytest.mark.asyncio
    async def test_deletes_remote_then_local(self, manager, jw, store, known_hook):
        await manager.unregister(HOOK_ID)
        jw.delete_webhook.assert_awaited_once_with(HOOK_ID)
        assert store.get(HOOK_ID) is None

    @pytest.mark.asyncio
    async def test_twice_is_a_noop(self, manager, jw, store, known_hook):
        await manager.unregister(HOOK_ID)
        jw.delete_webhook.return_value = False
        await manager.unregister(HOOK_ID)
        assert store.get(HOOK_ID) is None

    @pytest.mark.asyncio
    async def test_remote_failure_keeps_local_record(self, manager, jw, store, known_hook):
        jw.delete_webhook.side_effect = JWPlatformError(0, "timeout")
        with pytest.raises(RegistrationError):
            await manager.unregister(HOOK_ID)
        assert store.get(HOOK_ID) == known_hook


class TestSyncAndTeardown:
    @pytest.mark.asyncio
    async def test_teardown_removes_everything(self, manager, jw, store):
        store.insert("A", "s1")
        store.insert("B", "s2")
        assert await manager.teardown() == 2
        assert store.list() == set()
        assert jw.delete_webhook.await_count == 2

    @pytest.mark.asyncio
    async def test_sync_replaces_existing(self, manager, jw, store):
        store.insert("old", "s0")
        record = await manager.sync({"media_deleted"})
        jw.delete_webhook.assert_awaited_once_with("old")
        assert {r.id for r in store.list()} == {record.id}

    @pytest.mark.asyncio
    async def test_sync_with_nothing_wanted(self, manager, jw, store):
        store.insert("old", "s0")
        assert await manager.sync(set()) is None
        jw.create_webhook.assert_not_called()
        assert store.list() == set()


class TestFindOrphans:
    @pytest.mark.asyncio
    async def test_reports_remote_hooks_without_local_record(self, manager, jw, store, known_hook):
        jw.list_webhooks.return_value = [
            make_remote(HOOK_ID, secret=None),
            make_remote("orphan", secret=None),
            make_remote("elsewhere", secret=None, webhook_url="https://other.test/hook"),
        ]
        assert await manager.find_orphans() == ["orphan"]

    @pytest.mark.asyncio
    async def test_remote_failure(self, manager, jw):
        jw.list_webhooks.side_effect = JWPlatformError(500, "oops")
        with pytest.raises(RegistrationError):
            await manager.find_orphans()
