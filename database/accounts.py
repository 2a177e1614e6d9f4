"""
Account store — the only code that touches the ``users`` table.

Native SQLAlchemy / driver errors are translated into
``StorageViolationError`` here so nothing above this layer depends on the
database dialect.
"""

from __future__ import annotations

import logging
import re
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from auth.errors import StorageViolation, StorageViolationError
from database.models import User

logger = logging.getLogger(__name__)

_PG_UNIQUE = "23505"
_PG_FOREIGN_KEY = "23503"

# sqlite:   UNIQUE constraint failed: users.email
# postgres: Key (email)=(a@b.com) already exists.
_SQLITE_UNIQUE_RE = re.compile(r"UNIQUE constraint failed: ([\w., ]+)")
_PG_KEY_RE = re.compile(r"Key \(([^)]+)\)")


def _sqlstate(exc: SQLAlchemyError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    for attr in ("sqlstate", "pgcode"):
        code = getattr(orig, attr, None)
        if code:
            return str(code)
    return None


def _constraint_fields(text: str) -> list[str]:
    match = _SQLITE_UNIQUE_RE.search(text)
    if match:
        return [col.strip().split(".")[-1] for col in match.group(1).split(",")]
    match = _PG_KEY_RE.search(text)
    if match:
        return [col.strip() for col in match.group(1).split(",")]
    return []


def translate_error(exc: SQLAlchemyError) -> StorageViolationError:
    """Map a SQLAlchemy error onto the closed set of storage-violation kinds."""
    if isinstance(exc, NoResultFound):
        return StorageViolationError(StorageViolation.NOT_FOUND, "Record not found")

    text = str(getattr(exc, "orig", None) or exc)
    if isinstance(exc, IntegrityError):
        state = _sqlstate(exc)
        lowered = text.lower()
        if state == _PG_UNIQUE or "unique" in lowered or "duplicate key" in lowered:
            return StorageViolationError(
                StorageViolation.UNIQUE, text, fields=_constraint_fields(text),
            )
        if state == _PG_FOREIGN_KEY or "foreign key" in lowered:
            return StorageViolationError(
                StorageViolation.FOREIGN_KEY, text, meta={"constraint": text},
            )
    return StorageViolationError(StorageViolation.OTHER, text)


class AccountStore:
    """User-record persistence bound to one request's session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_email(self, email: str) -> Optional[User]:
        try:
            result = await self._session.execute(
                select(User).where(User.email == email)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise translate_error(exc) from exc

    async def get_by_id(self, user_id: str) -> User:
        """Fetch one user; raises a ``not_found`` violation if absent."""
        try:
            result = await self._session.execute(
                select(User).where(User.id == user_id)
            )
            return result.scalar_one()
        except SQLAlchemyError as exc:
            raise translate_error(exc) from exc

    async def create(self, email: str, password_hash: str) -> User:
        """
        Insert and commit a new user.

        The unique index on ``email`` is the authoritative duplicate check;
        a concurrent insert of the same email surfaces here as a
        ``unique`` violation.
        """
        user = User(id=str(uuid.uuid4()), email=email, password_hash=password_hash)
        self._session.add(user)
        try:
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            violation = translate_error(exc)
            logger.info("Insert rejected for users (%s)", violation.kind.value)
            raise violation from exc
        await self._session.refresh(user)
        return user
