"""
Auth API routes — signup, login.

Route prefix: /api/auth
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from api.responses import ErrorClassifier, success_response
from auth.dependencies import get_account_service, get_classifier
from auth.service import AccountService

router = APIRouter(tags=["auth"])


FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


async def _read_payload(request: Request) -> Any:
    """Parsed JSON or urlencoded form body.

    ``None`` when the body is empty or is not valid JSON, which the
    validator reports as a body-level issue.
    """
    if request.headers.get("content-type", "").startswith(FORM_CONTENT_TYPE):
        form = await request.form()
        return dict(form)
    body = await request.body()
    if not body:
        return None
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


@router.post("/signup")
async def signup(
    request: Request,
    service: AccountService = Depends(get_account_service),
    classifier: ErrorClassifier = Depends(get_classifier),
) -> JSONResponse:
    """Register a new user."""
    try:
        data = await service.signup(await _read_payload(request))
    except Exception as exc:
        return classifier.respond(request, exc)
    return success_response(
        data, message="User created successfully", status_code=status.HTTP_201_CREATED,
    )


@router.post("/login")
async def login(
    request: Request,
    service: AccountService = Depends(get_account_service),
    classifier: ErrorClassifier = Depends(get_classifier),
) -> JSONResponse:
    """Login with email + password."""
    try:
        data = await service.login(await _read_payload(request))
    except Exception as exc:
        return classifier.respond(request, exc)
    return success_response(data, message="Signed in successfully")
