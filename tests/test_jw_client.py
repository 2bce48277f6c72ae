"""Tests for the JW Platform webhooks client against a mocked transport."""

import json

import httpx
import pytest

from jw_webhooks.services.jw_client import JWClient, JWPlatformError

BASE = "https://api.jwplayer.test/v2"


def _client(handler) -> JWClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return JWClient("api-secret", "site123", base_url=BASE, http=http)


def _hook(hook_id: str, url: str = "https://example.test/hook", secret: str | None = None) -> dict:
    data = {"id": hook_id, "metadata": {"webhook_url": url, "events": ["media_deleted"]}}
    if secret:
        data["secret"] = secret
    return data


class TestCreateWebhook:
    @pytest.mark.asyncio
    async def test_posts_metadata_and_returns_secret(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json=_hook("hk_1", secret="shh"))

        hook = await _client(handler).create_webhook(
            {"media_updated", "media_deleted"}, "https://example.test/hook", name="n"
        )

        assert hook.id == "hk_1"
        assert hook.secret == "shh"
        assert seen["method"] == "POST"
        assert seen["url"] == f"{BASE}/webhooks/"
        assert seen["auth"] == "Bearer api-secret"
        metadata = seen["body"]["metadata"]
        assert metadata["events"] == ["media_deleted", "media_updated"]
        assert metadata["site_ids"] == ["site123"]
        assert metadata["webhook_url"] == "https://example.test/hook"

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        client = _client(lambda request: httpx.Response(400, text="bad events"))
        with pytest.raises(JWPlatformError) as exc_info:
            await client.create_webhook(["nope"], "https://example.test/hook", name="n")
        assert exc_info.value.status == 400

    @pytest.mark.asyncio
    async def test_missing_secret_raises(self):
        client = _client(lambda request: httpx.Response(201, json=_hook("hk_1")))
        with pytest.raises(JWPlatformError):
            await client.create_webhook(["media_deleted"], "https://example.test/hook", name="n")

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(JWPlatformError) as exc_info:
            await _client(handler).create_webhook(["media_deleted"], "https://x.test", name="n")
        assert exc_info.value.status == 0


class TestListWebhooks:
    @pytest.mark.asyncio
    async def test_follows_pages(self):
        pages = {
            "1": {"webhooks": [_hook("a"), _hook("b")], "total": 3},
            "2": {"webhooks": [_hook("c")], "total": 3},
        }

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=pages[request.url.params["page"]])

        hooks = await _client(handler).list_webhooks()
        assert [h.id for h in hooks] == ["a", "b", "c"]
        assert hooks[0].webhook_url == "https://example.test/hook"
        assert hooks[0].secret is None

    @pytest.mark.asyncio
    async def test_empty(self):
        client = _client(lambda request: httpx.Response(200, json={"webhooks": [], "total": 0}))
        assert await client.list_webhooks() == []


class TestDeleteWebhook:
    @pytest.mark.asyncio
    async def test_deleted(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            return httpx.Response(204)

        assert await _client(handler).delete_webhook("hk_1") is True
        assert seen["url"] == f"{BASE}/webhooks/hk_1/"

    @pytest.mark.asyncio
    async def test_already_gone(self):
        client = _client(lambda request: httpx.Response(404, json={"errors": []}))
        assert await client.delete_webhook("hk_1") is False

    @pytest.mark.asyncio
    async def test_server_error_raises(self):
        client = _client(lambda request: httpx.Response(503, text="down"))
        with pytest.raises(JWPlatformError):
            await client.delete_webhook("hk_1")
