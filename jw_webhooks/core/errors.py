"""Structured error response handlers.

Every error raised by the admin surface returns:

    {
      "error": {
        "code": "DESCRIPTIVE_CODE",
        "message": "Human-readable explanation of what went wrong.",
        "request_id": "abc123...",
        ...extra fields when relevant
      }
    }

The receive route never reaches these handlers: it answers every publish
request with the same response.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from jw_webhooks.services.registration import (
    InconsistentRegistrationError,
    RegistrationError,
)

logger = logging.getLogger(__name__)

_STATUS_CODE_MAP: dict[int, str] = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    502: "UPSTREAM_ERROR",
    503: "SERVICE_UNAVAILABLE",
}


def _error_response(
    request: Request, status_code: int, code: str, message: str, **extra
) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message, **extra, "request_id": request_id}},
    )


def register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        request_id = getattr(request.state, "request_id", None)

        if isinstance(exc.detail, dict):
            body = {"error": {**exc.detail, "request_id": request_id}}
        else:
            body = {
                "error": {
                    "code": _STATUS_CODE_MAP.get(exc.status_code, "ERROR"),
                    "message": str(exc.detail),
                    "request_id": request_id,
                }
            }

        return JSONResponse(
            status_code=exc.status_code,
            content=body,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        fields = []
        for err in exc.errors():
            loc = " -> ".join(str(part) for part in err["loc"])
            fields.append({"field": loc, "message": err["msg"], "type": err["type"]})

        return _error_response(
            request,
            422,
            "VALIDATION_ERROR",
            f"{len(fields)} validation error(s) in your request.",
            details=fields,
        )

    @app.exception_handler(InconsistentRegistrationError)
    async def inconsistent_registration_handler(
        request: Request, exc: InconsistentRegistrationError
    ) -> JSONResponse:
        return _error_response(
            request,
            500,
            "INCONSISTENT_REGISTRATION",
            (
                "The webhook was created at JW but could not be recorded locally. "
                "Requests for it cannot be authenticated; delete it at JW or "
                "restore the local record."
            ),
            webhook_id=exc.webhook_id,
        )

    @app.exception_handler(RegistrationError)
    async def registration_error_handler(
        request: Request, exc: RegistrationError
    ) -> JSONResponse:
        return _error_response(request, 502, "REGISTRATION_FAILED", str(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        request_id = getattr(request.state, "request_id", None)
        logger.exception("Unhandled error (request_id=%s)", request_id)

        return _error_response(
            request,
            500,
            "INTERNAL_ERROR",
            (
                "An unexpected error occurred. "
                "If this persists, check the logs for the request_id."
            ),
        )
