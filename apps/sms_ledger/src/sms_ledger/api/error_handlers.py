"""Global API exception handlers with a stable error payload shape."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from sms_ledger.domain.errors import DomainError, compose_error_message

logger = logging.getLogger(__name__)


def _error_payload(code: str, message: str, details: dict[str, Any]) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "code": code,
        "message": message,
    }
    if details:
        payload["details"] = details
    return payload


async def handle_domain_error(_: Request, exc: DomainError) -> JSONResponse:
    """Serialize domain error to the API error payload."""

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_payload(exc.code, exc.message, exc.details),
    )


async def handle_unexpected_error(_: Request, exc: Exception) -> JSONResponse:
    """Serialize unexpected failures with generic message."""

    logger.exception("Unhandled API error", exc_info=exc)
    return JSONResponse(
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        content=_error_payload(
            code="INTERNAL_SERVER_ERROR",
            message=compose_error_message(
                cause="An unexpected internal error occurred.",
                action="Retry later or check the server logs.",
            ),
            details={"error_type": type(exc).__name__},
        ),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach all global handlers to the FastAPI application."""

    app.add_exception_handler(DomainError, cast(Any, handle_domain_error))
    app.add_exception_handler(Exception, handle_unexpected_error)
