"""
FastAPI dependencies for the auth routes.

Long-lived components (hasher, token issuer, classifier, session factory)
are built once by ``main.create_app`` and kept on ``app.state``; these
dependencies hand them to route handlers and open one DB session per
request.
"""

from __future__ import annotations

from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from api.responses import ErrorClassifier
from auth.service import AccountService
from database.accounts import AccountStore


async def db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session for route handlers."""
    async with request.app.state.session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


def get_classifier(request: Request) -> ErrorClassifier:
    return request.app.state.classifier


def get_account_service(
    request: Request,
    session: AsyncSession = Depends(db_session),
) -> AccountService:
    state = request.app.state
    return AccountService(
        store=AccountStore(session),
        hasher=state.password_hasher,
        issuer=state.token_issuer,
    )
