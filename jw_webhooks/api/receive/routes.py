"""The route JW publishes webhook requests to.

Every request gets the same ``200 {"status": "received"}`` response, whether
it was dispatched or rejected.  Rejection reasons only reach the logs.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from jw_webhooks.core.config import settings
from jw_webhooks.services.receiver import WebhookReceiver

router = APIRouter(tags=["receive"])

RECEIVE_PATH = "/" + settings.receive_path.strip("/")


async def _read_bounded(request: Request, limit: int) -> bytes:
    """Read at most ``limit + 1`` bytes so oversized bodies are detectable."""
    chunks: list[bytes] = []
    size = 0
    async for chunk in request.stream():
        chunks.append(chunk)
        size += len(chunk)
        if size > limit:
            break
    return b"".join(chunks)[: limit + 1]


@router.post(
    RECEIVE_PATH,
    summary="Receive a JW publish request",
    description=(
        "Endpoint registered with JW as the webhook URL.  Authenticates the "
        "request against the secret of the webhook named in its body."
    ),
)
async def receive(request: Request) -> JSONResponse:
    receiver: WebhookReceiver = request.app.state.receiver
    body = await _read_bounded(request, settings.max_body_bytes)

    outcome = await run_in_threadpool(receiver.handle, body, request.headers)
    request.state.receive_outcome = outcome

    return JSONResponse(status_code=200, content={"status": "received"})
