"""
Account service — signup and login orchestration.

Each call walks one request through validation, lookup, hashing or
verification, and persistence / token issuance.  Any failure is raised as
an ``auth.errors`` exception (or passes through untouched) and is turned
into a client response by the route's classifier, never here.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Protocol

from auth.errors import DuplicateAccountError, InvalidCredentialsError, ValidationFailedError
from auth.password import PasswordHasher
from auth.tokens import TokenIssuer
from auth.validation import validate_login, validate_signup
from database.models import User

logger = logging.getLogger(__name__)


class AccountRepository(Protocol):
    async def find_by_email(self, email: str) -> User | None: ...

    async def get_by_id(self, user_id: str) -> User: ...

    async def create(self, email: str, password_hash: str) -> User: ...


class AccountService:
    def __init__(
        self,
        store: AccountRepository,
        hasher: PasswordHasher,
        issuer: TokenIssuer,
    ) -> None:
        self._store = store
        self._hasher = hasher
        self._issuer = issuer

    async def signup(self, payload: Any) -> Dict[str, Any]:
        """Register a new account and return its safe projection."""
        result = validate_signup(payload)
        if not result.ok:
            raise ValidationFailedError(result.issues)
        creds = result.data

        if await self._store.find_by_email(creds.email) is not None:
            raise DuplicateAccountError()

        password_hash = await self._hasher.hash(creds.password)
        # a racing signup that slipped past the pre-check fails here with
        # the store's unique violation, which classifies identically
        created = await self._store.create(creds.email, password_hash)
        # re-read so the projection reflects what storage committed
        user = await self._store.get_by_id(created.id)

        logger.info("Registered user %s", user.id)
        return {"user": user.to_safe_dict()}

    async def login(self, payload: Any) -> Dict[str, Any]:
        """Check credentials and return the safe projection plus a token."""
        result = validate_login(payload)
        if not result.ok:
            raise ValidationFailedError(result.issues)
        creds = result.data

        user = await self._store.find_by_email(creds.email)
        if user is None:
            await self._hasher.verify_decoy(creds.password)
            raise InvalidCredentialsError()
        if not await self._hasher.verify(creds.password, user.password_hash):
            raise InvalidCredentialsError()

        token = self._issuer.issue({"id": user.id, "email": user.email})
        logger.info("Login: %s", user.id)
        return {"user": user.to_safe_dict(), "token": token}
