"""
Error taxonomy shared by the auth pipeline and the response classifier.

Every failure raised inside signup / login is one of these (or a PyJWT
token error, or an arbitrary exception).  None of them formats a client
response itself; ``api.responses.ErrorClassifier`` does that.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence


class AppError(Exception):
    """Application-raised error with an explicit HTTP status."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        is_operational: bool = True,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.is_operational = is_operational


class InvalidCredentialsError(AppError):
    """Unknown email *or* wrong password; the two are never distinguished."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials", status_code=401)


class ValidationFailedError(Exception):
    """Payload failed schema validation; carries the per-field issues."""

    def __init__(self, issues: List[Dict[str, str]]) -> None:
        super().__init__("Validation failed")
        self.issues = list(issues)


class RateLimitExceededError(Exception):
    """Signal raised by an upstream limiter."""

    def __init__(self, retry_after: Optional[int] = None) -> None:
        super().__init__("Rate limit exceeded")
        self.retry_after = retry_after


class StorageViolation(str, Enum):
    UNIQUE = "unique"
    FOREIGN_KEY = "foreign_key"
    NOT_FOUND = "not_found"
    OTHER = "other"


class StorageViolationError(Exception):
    """
    Store-independent constraint signal.

    Store implementations translate their native driver errors into one of
    the ``StorageViolation`` kinds at their boundary.
    """

    def __init__(
        self,
        kind: StorageViolation,
        message: str = "",
        fields: Sequence[str] = (),
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message or kind.value)
        self.kind = kind
        self.message = message or kind.value
        self.fields = tuple(fields)
        self.meta = meta or {}


class DuplicateAccountError(StorageViolationError):
    """An account with this email already exists (pre-check path)."""

    def __init__(self, email_field: str = "email") -> None:
        super().__init__(
            StorageViolation.UNIQUE,
            "Account already exists",
            fields=(email_field,),
        )
