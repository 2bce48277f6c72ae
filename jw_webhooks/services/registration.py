"""Lifecycle of the webhooks this service holds at JW.

Creating a webhook is a two-step operation: JW creates it and returns its
secret, then the secret is recorded locally.  Nothing holds the registry
lock while JW is being called.  If the local write fails after JW succeeded,
JW will publish requests we can never authenticate; that state is raised as
``InconsistentRegistrationError`` for an operator to fix, never swallowed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from urllib.parse import urlsplit, urlunsplit

from jw_webhooks.models.hook_record import HookRecord
from jw_webhooks.models.schemas import KNOWN_EVENTS
from jw_webhooks.services.jw_client import JWClient, JWPlatformError
from jw_webhooks.services.registry_store import RegistryError, RegistryStore

logger = logging.getLogger(__name__)


class RegistrationError(Exception):
    """Raised when a webhook cannot be created or deleted."""


class InconsistentRegistrationError(RegistrationError):
    """JW holds a webhook whose secret is not recorded locally."""

    def __init__(self, webhook_id: str, cause: Exception):
        self.webhook_id = webhook_id
        super().__init__(
            f"Webhook {webhook_id} exists at JW but could not be recorded locally: {cause}"
        )


def build_receive_url(public_base_url: str, receive_path: str) -> str:
    """Absolute URL JW should publish to.  JW only accepts HTTPS."""
    parts = urlsplit(public_base_url)
    path = parts.path.rstrip("/") + "/" + receive_path.strip("/")
    return urlunsplit(("https", parts.netloc, path, "", ""))


class RegistrationManager:
    def __init__(
        self,
        client: JWClient,
        store: RegistryStore,
        receive_url: str,
        webhook_name: str = "jw-webhooks",
    ):
        self._client = client
        self._store = store
        self.receive_url = receive_url
        self._webhook_name = webhook_name

    async def register(self, events: Iterable[str]) -> HookRecord:
        """Create a webhook at JW for ``events`` and record its secret.

        Raises:
            ValueError: ``events`` is empty.
            RegistrationError: JW refused or could not be reached.
            InconsistentRegistrationError: JW created the webhook but the
                local record could not be written.
        """
        wanted = sorted(set(events))
        if not wanted:
            raise ValueError("At least one event is required to register a webhook")

        unknown = [e for e in wanted if e not in KNOWN_EVENTS]
        if unknown:
            logger.warning("Registering for unrecognised JW events: %s", ", ".join(unknown))

        try:
            remote = await self._client.create_webhook(
                wanted,
                self.receive_url,
                name=self._webhook_name,
                description=f"Publishes {', '.join(wanted)} to {self.receive_url}",
            )
        except JWPlatformError as exc:
            raise RegistrationError(f"Failed creating JW webhook: {exc}") from exc

        try:
            return await asyncio.to_thread(self._store.insert, remote.id, remote.secret)
        except RegistryError as exc:
            logger.critical(
                "JW webhook %s was created but its secret could not be recorded; "
                "publish requests for it will be rejected until this is fixed: %s",
                remote.id, exc,
            )
            raise InconsistentRegistrationError(remote.id, exc) from exc

    async def unregister(self, webhook_id: str) -> None:
        """Delete ``webhook_id`` at JW and locally.

        Safe to repeat: a webhook already gone at JW, or never recorded
        locally, is not an error.  If JW cannot be reached the local record
        is kept so requests for the webhook still authenticate.
        """
        try:
            await self._client.delete_webhook(webhook_id)
        except JWPlatformError as exc:
            raise RegistrationError(f"Failed deleting JW webhook {webhook_id}: {exc}") from exc

        await asyncio.to_thread(self._store.delete, webhook_id)

    async def teardown(self) -> int:
        """Unregister every webhook recorded locally."""
        records = await asyncio.to_thread(self._store.list)
        for record in sorted(records, key=lambda r: r.id):
            await self.unregister(record.id)
        if records:
            logger.info("Unregistered %d JW webhook(s)", len(records))
        return len(records)

    async def sync(self, events: Iterable[str]) -> HookRecord | None:
        """Replace whatever is registered with one webhook for ``events``.

        Returns ``None`` when nothing is wanted.
        """
        wanted = set(events)
        await self.teardown()
        if not wanted:
            logger.info("No JW events wanted; nothing registered")
            return None
        return await self.register(wanted)

    async def find_orphans(self) -> list[str]:
        """IDs of JW webhooks publishing to us that have no local record."""
        try:
            remote = await self._client.list_webhooks()
        except JWPlatformError as exc:
            raise RegistrationError(f"Failed listing JW webhooks: {exc}") from exc

        local = {r.id for r in await asyncio.to_thread(self._store.list)}
        orphans = sorted(
            hook.id for hook in remote
            if hook.webhook_url == self.receive_url and hook.id not in local
        )
        if orphans:
            logger.warning("JW webhooks without a local secret: %s", ", ".join(orphans))
        return orphans
