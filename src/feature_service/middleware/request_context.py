"""Per-request context: request ID, method and path.

:class:`RequestContextMiddleware` binds a :class:`RequestContext` to the
running request, echoes the request ID back in ``x-request-id`` and writes
one access record per request.  Log filters and error bodies read the
bound context through :func:`current_request`.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

from starlette.datastructures import Headers, MutableHeaders

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-request-id"


@dataclass(frozen=True)
class RequestContext:
    """What is known about the request currently being served."""

    request_id: str = ""
    method: str = ""
    path: str = ""


request_context_var: ContextVar[RequestContext] = ContextVar(
    "request_context",
    default=RequestContext(),
)


def current_request() -> RequestContext:
    return request_context_var.get()


def get_request_id() -> str:
    """Return the ID of the request being served, or ``""`` outside one."""
    return request_context_var.get().request_id


class RequestContextMiddleware:
    """Pure ASGI middleware binding a :class:`RequestContext` per HTTP request.

    The caller's ``x-request-id`` is reused when present; otherwise a
    UUID-4 hex is generated.  When the request finishes an INFO record
    carrying ``status`` and ``duration_ms`` is logged.
    """

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(self, scope: dict[str, Any], receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = Headers(scope=scope).get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        context = RequestContext(
            request_id=request_id,
            method=scope.get("method", ""),
            path=scope.get("path", ""),
        )
        token = request_context_var.set(context)
        status = 500
        started = time.perf_counter()

        async def send_with_request_id(message: dict[str, Any]) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
                MutableHeaders(scope=message).append(REQUEST_ID_HEADER, request_id)
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            logger.info(
                "%s %s -> %d",
                context.method,
                context.path,
                status,
                extra={
                    "status": status,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )
            request_context_var.reset(token)
