"""
Uniform response envelopes and the error classifier.

``ErrorClassifier.respond`` is the single exit for every failed request:
it turns whatever was raised into one ``ClassifiedError``, writes exactly
one structured log record, and renders the JSON error body.

Precedence (first match wins):
  no error → caller default · validation → 400 · unique → 409 ·
  foreign key → 400 · not found → 404 · other storage → 400 ·
  expired token → 401 · invalid token → 401 · rate limit → 429 ·
  AppError → its status · anything else → caller default
"""

from __future__ import annotations

import json
import logging
import re
import traceback
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import jwt
import nh3
from fastapi import Request
from fastapi.responses import JSONResponse

from auth.errors import (
    AppError,
    RateLimitExceededError,
    StorageViolation,
    StorageViolationError,
    ValidationFailedError,
)
from config.settings import Settings

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "x-correlation-id"

ERROR_MESSAGES = {
    "validation_failed": "Validation failed",
    "invalid_token": "Invalid token. Please login again.",
    "token_expired": "Your token has expired. Please login again.",
    "rate_limit_exceeded": "Too many requests. Please try again later.",
    "duplicate_entry": "Duplicate entry found.",
    "not_found": "Record not found",
    "storage_failed": "Storage operation failed.",
}

_WS_RE = re.compile(r"\s+")


def sanitize(text: Any) -> str:
    """Strip markup from *text* so it is safe to reflect in logs and responses.

    Tags are removed (``<script>``/``<style>`` together with their content)
    and stray angle brackets come back entity-escaped rather than dropped.
    """
    if text is None:
        return ""
    cleaned = nh3.clean(str(text), tags=set())
    return _WS_RE.sub(" ", cleaned).strip()


def short_id() -> str:
    return uuid.uuid4().hex[:8]


@dataclass
class ClassifiedError:
    status_code: int
    error_code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    stack: Optional[str] = None
    # unexpected failures also get the stack in the response body (non-production only)
    unexpected: bool = False


def success_response(
    data: Any = None,
    message: str = "Success",
    status_code: int = 200,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": True, "message": message, "data": data, "error": None},
    )


def _format_stack(error: BaseException) -> str:
    return "".join(traceback.format_exception(type(error), error, error.__traceback__))


class ErrorClassifier:
    """Maps raised errors to a stable external error shape."""

    def __init__(self, settings: Settings) -> None:
        self._debug = not settings.is_production

    def classify(
        self,
        error: Optional[BaseException] = None,
        *,
        status_code: int = 500,
        message: str = "Internal Server Error",
    ) -> ClassifiedError:
        if error is None:
            return ClassifiedError(status_code, f"ERR-{status_code}-{short_id()}", message)

        classified = self._classify_error(error, status_code, message)
        if self._debug:
            classified.stack = _format_stack(error)
        return classified

    def _classify_error(
        self, error: BaseException, status_code: int, message: str,
    ) -> ClassifiedError:
        if isinstance(error, ValidationFailedError):
            return ClassifiedError(
                400,
                f"ERR-400-{short_id()}",
                ERROR_MESSAGES["validation_failed"],
                {"issues": error.issues},
            )

        if isinstance(error, StorageViolationError):
            return self._classify_storage(error)

        # ExpiredSignatureError subclasses InvalidTokenError; check it first
        if isinstance(error, jwt.ExpiredSignatureError):
            return ClassifiedError(401, "ERR-JWT-EXPIRED-401", ERROR_MESSAGES["token_expired"])
        if isinstance(error, jwt.InvalidTokenError):
            return ClassifiedError(401, "ERR-JWT-INVALID-401", ERROR_MESSAGES["invalid_token"])

        if isinstance(error, RateLimitExceededError):
            return ClassifiedError(
                429,
                "ERR-RATE-LIMIT-429",
                ERROR_MESSAGES["rate_limit_exceeded"],
                {"retryAfter": error.retry_after or 60},
            )

        if isinstance(error, AppError):
            return ClassifiedError(
                error.status_code,
                f"ERR-{error.status_code}-{short_id()}",
                sanitize(error.message),
                {"isOperational": error.is_operational},
                unexpected=not error.is_operational,
            )

        return ClassifiedError(
            status_code,
            f"ERR-{status_code}-{short_id()}",
            sanitize(str(error)) or message,
            unexpected=True,
        )

    def _classify_storage(self, error: StorageViolationError) -> ClassifiedError:
        if error.kind is StorageViolation.UNIQUE:
            return ClassifiedError(
                409,
                "ERR-DUPLICATE-409",
                ERROR_MESSAGES["duplicate_entry"],
                {"field": ", ".join(error.fields) if error.fields else "unknown"},
            )
        if error.kind is StorageViolation.FOREIGN_KEY:
            reference = sanitize(json.dumps(error.meta, default=str))
            return ClassifiedError(
                400,
                "ERR-FOREIGNKEY-400",
                f"Invalid foreign key: {reference}",
                {"reference": reference},
            )
        if error.kind is StorageViolation.NOT_FOUND:
            return ClassifiedError(404, "ERR-NOT-FOUND-404", ERROR_MESSAGES["not_found"])
        # raw driver text stays out of production responses
        message = sanitize(error.message) if self._debug else ""
        return ClassifiedError(
            400,
            "ERR-STORAGE-400",
            message or ERROR_MESSAGES["storage_failed"],
        )

    def respond(
        self,
        request: Request,
        error: Optional[BaseException] = None,
        *,
        status_code: int = 500,
        message: str = "Internal Server Error",
    ) -> JSONResponse:
        """Classify, log once, and render the error response."""
        classified = self.classify(error, status_code=status_code, message=message)
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())

        record = {
            "correlationId": correlation_id,
            "method": request.method,
            "url": str(request.url.path)
            + (f"?{request.url.query}" if request.url.query else ""),
            "message": classified.message,
            "statusCode": classified.status_code,
            "errorCode": classified.error_code,
            "ip": request.client.host if request.client else None,
            "userAgent": request.headers.get("user-agent"),
            "details": classified.details,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if classified.stack:
            record["stack"] = classified.stack
        logger.error(
            "%s %s -> %s %s",
            record["method"],
            record["url"],
            classified.status_code,
            classified.error_code,
            extra={"error_record": record},
        )

        body: Dict[str, Any] = {
            "success": False,
            "errorCode": classified.error_code,
            "message": classified.message,
            "correlationId": correlation_id,
        }
        if classified.details:
            body["details"] = classified.details
        if classified.stack and classified.unexpected:
            body["stack"] = classified.stack
        return JSONResponse(
            status_code=classified.status_code,
            content=body,
            headers={"X-Correlation-ID": correlation_id},
        )
