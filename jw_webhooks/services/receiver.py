"""Handles a single JW publish request, end to end.

    received → id_extracted → secret_found → authenticated → decoded → dispatched

Any step can end the request in ``rejected`` with a ``Rejection`` reason.
Reasons exist for logs and tests only: the HTTP response is the same whatever
happened here, so a caller learns nothing about which check failed.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from jw_webhooks.core import signatures
from jw_webhooks.models.schemas import WebhookEventBody
from jw_webhooks.services import event_parser
from jw_webhooks.services.registry_store import RegistryError, RegistryStore

logger = logging.getLogger(__name__)

# Oversized bodies are only logged up to this many bytes.
_LOGGED_PREFIX_BYTES = 1024


class ReceiveState(str, enum.Enum):
    RECEIVED = "received"
    ID_EXTRACTED = "id_extracted"
    SECRET_FOUND = "secret_found"
    AUTHENTICATED = "authenticated"
    DECODED = "decoded"
    DISPATCHED = "dispatched"
    REJECTED = "rejected"


class Rejection(str, enum.Enum):
    BODY_TOO_LARGE = "body too large"
    UNPARSEABLE_BODY = "unparseable body"
    UNKNOWN_WEBHOOK_ID = "unknown webhook id"
    REGISTRY_UNAVAILABLE = "registry unavailable"
    AUTHENTICATION_FAILED = "authentication failed"
    MALFORMED_PAYLOAD = "malformed authenticated payload"


@dataclass(frozen=True)
class ReceiveOutcome:
    state: ReceiveState
    rejection: Rejection | None = None
    webhook_id: str | None = None
    event: WebhookEventBody | None = None

    @property
    def dispatched(self) -> bool:
        return self.state is ReceiveState.DISPATCHED


def _rejected(reason: Rejection, webhook_id: str | None = None) -> ReceiveOutcome:
    return ReceiveOutcome(ReceiveState.REJECTED, rejection=reason, webhook_id=webhook_id)


class WebhookReceiver:
    def __init__(
        self,
        store: RegistryStore,
        notify: Callable[[WebhookEventBody], object],
        max_body_bytes: int = 64 * 1024,
    ):
        self._store = store
        self._notify = notify
        self._max_body_bytes = max_body_bytes

    def handle(self, body: bytes, headers: Mapping[str, str]) -> ReceiveOutcome:
        """Authenticate, decode and dispatch one publish request.

        Never raises for anything wrong with the request or the registry;
        exceptions from the notify callable are its own and propagate.
        """
        lowered = {k.lower(): v for k, v in headers.items()}

        if len(body) > self._max_body_bytes:
            logger.warning(
                "Rejected JW publish request: body exceeds %d bytes: headers=%r body[:%d]=%r",
                self._max_body_bytes, lowered, _LOGGED_PREFIX_BYTES, body[:_LOGGED_PREFIX_BYTES],
            )
            return _rejected(Rejection.BODY_TOO_LARGE)

        extracted = event_parser.extract_id(body)
        if not extracted.ok:
            logger.warning(
                "Failed getting webhook ID from JW publish request (%s): headers=%r body=%r",
                extracted.failure.value, lowered, body,
            )
            return _rejected(Rejection.UNPARSEABLE_BODY)
        webhook_id = extracted.value

        try:
            record = self._store.get(webhook_id)
        except RegistryError:
            logger.exception(
                "Could not look up JW webhook [%s]: headers=%r body=%r", webhook_id, lowered, body
            )
            return _rejected(Rejection.REGISTRY_UNAVAILABLE, webhook_id)
        if record is None:
            # Expected after a webhook is removed while JW still has requests queued.
            logger.info(
                "Missing local record of JW webhook [%s]: headers=%r body=%r",
                webhook_id, lowered, body,
            )
            return _rejected(Rejection.UNKNOWN_WEBHOOK_ID, webhook_id)

        authorization = lowered.get("authorization")
        verification = signatures.verify(authorization, record.secret, body)
        if not verification.ok:
            logger.warning(
                "Failed authenticating JW publish request (%s): id=%s auth_header=%r "
                "headers=%r body=%r",
                verification.failure.value, webhook_id, authorization, lowered, body,
            )
            return _rejected(Rejection.AUTHENTICATION_FAILED, webhook_id)

        decoded = event_parser.decode(body)
        if not decoded.ok:
            logger.error(
                "Failed parsing authenticated JW publish request (%s: %s): id=%s headers=%r body=%r",
                decoded.failure.value, decoded.detail, webhook_id, lowered, body,
            )
            return _rejected(Rejection.MALFORMED_PAYLOAD, webhook_id)
        event = decoded.value

        if event.webhook_id != webhook_id:
            logger.error(
                "Authenticated JW publish request names two webhooks (%s, %s): headers=%r body=%r",
                webhook_id, event.webhook_id, lowered, body,
            )
            return _rejected(Rejection.MALFORMED_PAYLOAD, webhook_id)

        logger.info(
            "JW sent %s notice for %s (webhook=%s site=%s time=%s)",
            event.event, event.media_id, event.webhook_id, event.site_id,
            event.event_time.isoformat(),
        )
        self._notify(event)
        return ReceiveOutcome(ReceiveState.DISPATCHED, webhook_id=webhook_id, event=event)
