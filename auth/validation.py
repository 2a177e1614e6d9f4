"""
Signup / login payload validation.

Validation never raises: it returns a ``ValidationResult`` carrying either
the normalized credentials or an ordered list of per-field issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, ValidationError, field_validator

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 20


class CredentialsSchema(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class SignupSchema(CredentialsSchema):
    pass


class LoginSchema(CredentialsSchema):
    pass


@dataclass(frozen=True)
class Credentials:
    email: str
    password: str


@dataclass
class ValidationResult:
    data: Optional[Credentials] = None
    issues: List[Dict[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.data is not None and not self.issues


def _issue_message(error: Dict[str, Any]) -> str:
    if error["type"] == "string_too_long":
        return f"Max length of password is {PASSWORD_MAX_LENGTH}"
    return error["msg"]


def _validate(schema: type[CredentialsSchema], payload: Any) -> ValidationResult:
    if not isinstance(payload, dict):
        return ValidationResult(
            issues=[{"field": "body", "message": "Expected a JSON object"}]
        )
    try:
        parsed = schema.model_validate(payload)
    except ValidationError as exc:
        return ValidationResult(
            issues=[
                {
                    "field": ".".join(str(loc) for loc in e["loc"]) or "body",
                    "message": _issue_message(e),
                }
                for e in exc.errors()
            ]
        )
    return ValidationResult(data=Credentials(email=str(parsed.email), password=parsed.password))


def validate_signup(payload: Any) -> ValidationResult:
    return _validate(SignupSchema, payload)


def validate_login(payload: Any) -> ValidationResult:
    return _validate(LoginSchema, payload)
