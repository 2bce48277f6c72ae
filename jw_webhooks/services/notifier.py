"""In-process fan-out of authenticated JW events to interested listeners.

Listeners subscribe to the event tags they care about.  The union of those
tags is what the registration manager asks JW to send us.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Callable, Iterable

from jw_webhooks.models.schemas import WebhookEventBody

logger = logging.getLogger(__name__)

Listener = Callable[[WebhookEventBody], None]


class EventNotifier:
    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, events: Iterable[str], listener: Listener) -> None:
        with self._lock:
            for event in events:
                if listener not in self._listeners[event]:
                    self._listeners[event].append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        with self._lock:
            for event in list(self._listeners):
                listeners = self._listeners[event]
                if listener in listeners:
                    listeners.remove(listener)
                if not listeners:
                    del self._listeners[event]

    def wanted_events(self) -> set[str]:
        with self._lock:
            return {event for event, listeners in self._listeners.items() if listeners}

    def notify(self, event: WebhookEventBody) -> int:
        """Call every listener subscribed to ``event.event``.

        A listener that raises is logged and skipped; the rest still run.
        Returns the number of listeners that completed.
        """
        with self._lock:
            listeners = list(self._listeners.get(event.event, ()))

        if not listeners:
            logger.debug("No listeners for %s event", event.event)
            return 0

        delivered = 0
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "Listener %r failed handling %s for media %s",
                    listener, event.event, event.media_id,
                )
                continue
            delivered += 1
        return delivered
