"""HTTP client for the JW Platform Management API v2 webhook endpoints.

Wraps ``/v2/webhooks/`` (create, list, delete) behind an async interface.
The client is constructed explicitly and passed to whoever needs it; nothing
here caches a process-wide instance.  All upstream errors are translated into
``JWPlatformError`` so callers deal with one exception type.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import httpx

logger = logging.getLogger(__name__)

_PAGE_LENGTH = 50


class JWPlatformError(Exception):
    def __init__(self, status: int, detail: str):
        self.status = status
        self.detail = detail
        super().__init__(f"JW Platform {status}: {detail}")


@dataclass(frozen=True)
class RemoteWebhook:
    id: str
    webhook_url: str = ""
    events: list[str] = field(default_factory=list)
    # Only returned by JW when the webhook is created.
    secret: str | None = field(default=None, repr=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> RemoteWebhook:
        metadata = data.get("metadata") or {}
        return cls(
            id=data["id"],
            webhook_url=metadata.get("webhook_url", ""),
            events=list(metadata.get("events", [])),
            secret=data.get("secret"),
        )


class JWClient:
    def __init__(
        self,
        api_secret: str,
        site_id: str,
        base_url: str = "https://api.jwplayer.com/v2",
        timeout: float = 10.0,
        http: httpx.AsyncClient | None = None,
    ):
        self.site_id = site_id
        self._base = base_url.rstrip("/")
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=timeout)
        self._headers = {
            "Authorization": f"Bearer {api_secret}",
            "Accept": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._http.request(
                method, f"{self._base}{path}", headers=self._headers, **kwargs
            )
        except httpx.HTTPError as exc:
            raise JWPlatformError(0, f"Cannot reach JW at {self._base}: {exc}") from exc

    async def create_webhook(
        self,
        events: Iterable[str],
        webhook_url: str,
        name: str,
        description: str = "",
    ) -> RemoteWebhook:
        """POST /webhooks/: subscribe ``webhook_url`` to ``events``.

        The returned ``RemoteWebhook`` carries the secret JW will sign
        publish requests with.  JW never returns it again.
        """
        payload = {
            "metadata": {
                "name": name,
                "description": description,
                "webhook_url": webhook_url,
                "events": sorted(events),
                "site_ids": [self.site_id],
            }
        }
        resp = await self._request("POST", "/webhooks/", json=payload)
        if resp.status_code >= 400:
            raise JWPlatformError(resp.status_code, resp.text)

        try:
            hook = RemoteWebhook.from_api(resp.json())
        except (ValueError, KeyError, TypeError) as exc:
            raise JWPlatformError(resp.status_code, f"Unexpected create response: {exc}") from exc
        if not hook.secret:
            raise JWPlatformError(resp.status_code, f"JW returned no secret for webhook {hook.id}")

        logger.info("Created JW webhook %s for %s", hook.id, ", ".join(hook.events))
        return hook

    async def list_webhooks(self) -> list[RemoteWebhook]:
        """GET /webhooks/: every webhook on the account, across all pages."""
        hooks: list[RemoteWebhook] = []
        page = 1
        while True:
            resp = await self._request(
                "GET", "/webhooks/", params={"page": page, "page_length": _PAGE_LENGTH}
            )
            if resp.status_code >= 400:
                raise JWPlatformError(resp.status_code, resp.text)

            try:
                data = resp.json()
                batch = [RemoteWebhook.from_api(item) for item in data.get("webhooks", [])]
            except (ValueError, KeyError, TypeError, AttributeError) as exc:
                raise JWPlatformError(resp.status_code, f"Unexpected list response: {exc}") from exc

            hooks.extend(batch)
            total = data.get("total", len(hooks))
            if not batch or len(hooks) >= total:
                return hooks
            page += 1

    async def delete_webhook(self, webhook_id: str) -> bool:
        """DELETE /webhooks/{id}/: returns False if JW had no such webhook."""
        resp = await self._request("DELETE", f"/webhooks/{webhook_id}/")
        if resp.status_code == 404:
            logger.info("JW webhook %s already gone", webhook_id)
            return False
        if resp.status_code >= 400:
            raise JWPlatformError(resp.status_code, resp.text)

        logger.info("Deleted JW webhook %s", webhook_id)
        return True

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()
