"""
Global middleware.
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request

from api.responses import CORRELATION_HEADER

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Content-Security-Policy": "default-src 'self'",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
}


def register_middleware(app: FastAPI) -> None:
    """Attach any app-level middleware."""

    @app.middleware("http")
    async def request_timer(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        correlation_id = request.headers.get(CORRELATION_HEADER)
        if correlation_id:
            response.headers.setdefault("X-Correlation-ID", correlation_id)
        logger.info(
            "%s %s %s %d — %.3fs",
            request.client.host if request.client else "-",
            request.method,
            request.url.path,
            response.status_code,
            elapsed,
        )
        return response
