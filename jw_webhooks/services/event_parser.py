"""Two-phase parsing of JW publish request bodies.

The webhook ID has to come out of the body before the secret can be looked up,
which means before the body is authenticated.  ``extract_id`` therefore reads
that one field from untrusted input and nothing else.  ``decode`` produces the
full ``WebhookEventBody`` and is only called once the signature has passed.

Neither function raises on bad input: every failure comes back as a
``ParseResult`` with a ``ParseFailure`` reason.
"""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import ValidationError

from jw_webhooks.models.schemas import WebhookEventBody

T = TypeVar("T")


class ParseFailure(str, enum.Enum):
    NOT_JSON = "not_json"
    NOT_OBJECT = "not_object"
    MISSING_WEBHOOK_ID = "missing_webhook_id"
    INVALID_FIELDS = "invalid_fields"


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    value: T | None = None
    failure: ParseFailure | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


def _load_object(raw: bytes) -> dict[str, Any] | ParseResult:
    try:
        data = json.loads(raw)
    # UnicodeDecodeError is a ValueError; deep nesting overflows the decoder.
    except (ValueError, TypeError, RecursionError) as exc:
        return ParseResult(failure=ParseFailure.NOT_JSON, detail=type(exc).__name__)

    if not isinstance(data, dict):
        return ParseResult(failure=ParseFailure.NOT_OBJECT, detail=type(data).__name__)
    return data


def extract_id(raw: bytes) -> ParseResult[str]:
    """Pull ``webhook_id`` out of an unauthenticated body."""
    data = _load_object(raw)
    if isinstance(data, ParseResult):
        return data

    webhook_id = data.get("webhook_id")
    if not isinstance(webhook_id, str) or not webhook_id:
        return ParseResult(failure=ParseFailure.MISSING_WEBHOOK_ID)
    return ParseResult(value=webhook_id)


def decode(raw: bytes) -> ParseResult[WebhookEventBody]:
    """Decode an authenticated body into a ``WebhookEventBody``."""
    data = _load_object(raw)
    if isinstance(data, ParseResult):
        return data

    try:
        event = WebhookEventBody.model_validate(data)
    except ValidationError as exc:
        fields = ", ".join(
            ".".join(str(part) for part in err["loc"]) or "<root>" for err in exc.errors()
        )
        return ParseResult(failure=ParseFailure.INVALID_FIELDS, detail=fields)
    return ParseResult(value=event)
