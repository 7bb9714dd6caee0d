"""Centralised error handling for the feature service.

Provides:

* :class:`CatchAllErrorMiddleware` — a pure ASGI middleware that
  catches unhandled exceptions and returns a generic 500 JSON body.
* :func:`register_error_handlers` — wires up FastAPI exception handlers
  for domain errors, store errors, Starlette ``HTTPException``,
  validation errors, and a generic fallback.

Every handled error is rendered with the same envelope::

    {"error": {"code": ..., "message": ..., "request_id": ..., "details": {...}}}
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any

from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException
from starlette.responses import JSONResponse

from feature_service.exceptions import (
    FeatureNotFoundError,
    FeatureServiceError,
    InvalidInputError,
)
from feature_service.middleware.request_context import get_request_id

if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.requests import Request

logger = logging.getLogger(__name__)

_Scope = dict[str, Any]
_Receive = Any
_Send = Any

# -- status code mapping --------------------------------------------------

_STATUS_MAP: dict[type[FeatureServiceError], int] = {
    InvalidInputError: 400,
    FeatureNotFoundError: 404,
}

# -- helpers ---------------------------------------------------------------

_CAMEL_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _error_code_from_class(cls: type[Exception]) -> str:
    """Convert e.g. ``InvalidInputError`` to ``INVALID_INPUT``.

    The trailing ``Error`` suffix is stripped before conversion.
    """
    name = cls.__name__
    if name.endswith("Error"):
        name = name[: -len("Error")]
    return _CAMEL_RE.sub("_", name).upper()


def _error_body(
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "request_id": get_request_id(),
            "details": details or {},
        },
    }


# ======================================================================
# Pure ASGI catch-all middleware
# ======================================================================


class CatchAllErrorMiddleware:
    """Wraps the ASGI application and catches any unhandled exception.

    Returns a minimal ``500 Internal Server Error`` JSON response so
    the client always receives a well-formed error payload.
    """

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(
        self,
        scope: _Scope,
        receive: _Receive,
        send: _Send,
    ) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        except Exception:
            logger.exception("Unhandled exception in ASGI application")
            body = json.dumps(
                _error_body(
                    "INTERNAL_SERVER_ERROR",
                    "An unexpected error occurred.",
                ),
            ).encode()

            await send(
                {
                    "type": "http.response.start",
                    "status": 500,
                    "headers": [
                        (b"content-type", b"application/json"),
                        (b"content-length", str(len(body)).encode()),
                    ],
                },
            )
            await send({"type": "http.response.body", "body": body})


# ======================================================================
# FastAPI exception handlers
# ======================================================================


async def handle_feature_service_error(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Map any :class:`FeatureServiceError` subclass to a JSON response.

    Walks the exception's MRO to find the most specific HTTP status
    code registered in :data:`_STATUS_MAP`.
    """
    assert isinstance(exc, FeatureServiceError)
    status = 500
    for cls in type(exc).__mro__:
        if cls in _STATUS_MAP:
            status = _STATUS_MAP[cls]
            break

    code = _error_code_from_class(type(exc))
    return JSONResponse(
        status_code=status,
        content=_error_body(code, str(exc), exc.details),
    )


async def handle_store_error(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Report a database failure as 503 without leaking driver details."""
    assert isinstance(exc, SQLAlchemyError)
    logger.error("Feature store failure: %s", type(exc).__name__, exc_info=exc)
    return JSONResponse(
        status_code=503,
        content=_error_body(
            "STORE_UNAVAILABLE",
            "The feature store could not complete the request.",
        ),
    )


async def handle_http_exception(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle Starlette :class:`HTTPException`."""
    assert isinstance(exc, HTTPException)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("HTTP_ERROR", str(exc.detail)),
    )


async def handle_validation_error(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle Pydantic / FastAPI request validation errors."""
    assert isinstance(exc, RequestValidationError)
    return JSONResponse(
        status_code=422,
        content=_error_body(
            "VALIDATION_ERROR",
            "Request validation failed.",
            {"errors": _jsonable_errors(exc.errors())},
        ),
    )


async def handle_generic_error(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Last-resort handler for completely unexpected exceptions."""
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content=_error_body(
            "INTERNAL_SERVER_ERROR",
            "An unexpected error occurred.",
        ),
    )


def _jsonable_errors(errors: Any) -> list[dict[str, Any]]:
    # pydantic puts the raw exception under "ctx" for some validators
    cleaned: list[dict[str, Any]] = []
    for err in errors:
        item = dict(err)
        if "ctx" in item:
            item["ctx"] = {k: str(v) for k, v in item["ctx"].items()}
        cleaned.append(item)
    return cleaned


def register_error_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the given FastAPI app."""
    app.add_exception_handler(FeatureServiceError, handle_feature_service_error)
    app.add_exception_handler(SQLAlchemyError, handle_store_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_generic_error)
