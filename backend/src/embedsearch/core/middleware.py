"""
Request context middleware.

Tags every request with an ``X-Request-ID`` (reusing the caller's when
present), reports the handling time in ``X-Response-Time`` and logs one line
per request. Embed script fetches are frequent and cacheable, so they are
logged at DEBUG.
"""

import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .logging import get_logger

logger = get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, embed_prefix: str = "/v1/embed"):
        super().__init__(app)
        self.embed_prefix = embed_prefix

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms / 1000:.3f}s"

        level = logging.DEBUG if request.url.path.startswith(self.embed_prefix) else logging.INFO
        logger.log(
            level,
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={
                "request_id": request_id,
                "status_code": response.status_code,
                "duration_ms": round(elapsed_ms, 2),
                "origin": request.headers.get("origin"),
            },
        )
        return response
