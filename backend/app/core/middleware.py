from __future__ import annotations

import logging
from time import perf_counter

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        started = perf_counter()
        response = await call_next(request)
        logger.info(
            "HTTP | method=%s | path=%s | status=%s | wall_ms=%s",
            request.method,
            request.url.path,
            response.status_code,
            int((perf_counter() - started) * 1000),
        )
        return response


class CatalogSizeLimitMiddleware(BaseHTTPMiddleware):
    """Rejects catalog uploads whose declared size exceeds the configured limit."""

    def __init__(self, app, *, max_bytes: int) -> None:
        super().__init__(app)
        self._max_bytes = max(1, max_bytes)

    async def dispatch(self, request: Request, call_next) -> Response:
        raw_length = request.headers.get("content-length")
        if raw_length and raw_length.isdigit() and int(raw_length) > self._max_bytes:
            logger.warning("HTTP | path=%s | rejected_bytes=%s", request.url.path, raw_length)
            return JSONResponse(
                status_code=413,
                content={
                    "message": f"Catalog payload too large ({raw_length} bytes)",
                    "details": {"max_bytes": self._max_bytes},
                },
            )
        return await call_next(request)
