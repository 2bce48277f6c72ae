"""Access logging middleware.

Every request gets an ``X-Request-ID`` and one access log line.  Publish
requests are answered identically whatever happened to them, so their line
also names the receiver's outcome: that is the only place a rejected delivery
shows up next to its request ID.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from jw_webhooks.services.receiver import ReceiveOutcome, Rejection

logger = logging.getLogger("jw_webhooks.access")

# Rejections that happen under normal churn and are not worth a warning.
_ROUTINE_REJECTIONS = frozenset({Rejection.UNKNOWN_WEBHOOK_ID})


def _describe(outcome: ReceiveOutcome) -> tuple[int, str]:
    """Log level and ``key=value`` summary for a publish request."""
    if outcome.rejection is None:
        level = logging.INFO
        result = outcome.state.value
    else:
        level = logging.INFO if outcome.rejection in _ROUTINE_REJECTIONS else logging.WARNING
        result = f"rejected:{outcome.rejection.name.lower()}"

    event = outcome.event.event if outcome.event is not None else "-"
    return level, f"result={result} webhook={outcome.webhook_id or '-'} event={event}"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = uuid.uuid4().hex[:12]
        request.state.request_id = request_id

        start = time.monotonic()
        response = await call_next(request)
        elapsed_ms = (time.monotonic() - start) * 1000

        response.headers["X-Request-ID"] = request_id

        outcome: ReceiveOutcome | None = getattr(request.state, "receive_outcome", None)
        if outcome is None:
            logger.info(
                "%s %s %d %.1fms req=%s",
                request.method, request.url.path, response.status_code, elapsed_ms, request_id,
            )
            return response

        level, summary = _describe(outcome)
        logger.log(
            level,
            "%s %s %d %.1fms %s req=%s",
            request.method, request.url.path, response.status_code, elapsed_ms, summary, request_id,
        )
        return response
