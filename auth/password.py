"""
Password hashing and verification.

Uses bcrypt for password hashing with automatic salting and a work factor
fixed per deployment (``config.bcrypt_rounds``).  bcrypt is deliberately
slow, so both operations run in a worker thread via ``asyncio.to_thread()``
and never block the event loop.

bcrypt only accepts 72 bytes of input, which a 20-character password of
multi-byte characters can exceed.  Passwords are therefore pre-hashed with
SHA-256 and base64-encoded (44 bytes) before reaching bcrypt.
"""

from __future__ import annotations

import asyncio
import base64
import hashlib

import bcrypt


def _prehash(password: str) -> bytes:
    return base64.b64encode(hashlib.sha256(password.encode()).digest())


class PasswordHasher:
    """Salted one-way hashing of user passwords."""

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds
        # compared against when no account exists, so lookups for unknown
        # emails cost the same as a wrong password
        self._decoy_hash = self.hash_sync("decoy-password")

    def hash_sync(self, password: str) -> str:
        if not password:
            raise ValueError("cannot hash an empty password")
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(_prehash(password), salt).decode()

    def verify_sync(self, password: str, password_hash: str) -> bool:
        """Constant-time comparison against a bcrypt hash."""
        try:
            return bcrypt.checkpw(_prehash(password), password_hash.encode())
        except (ValueError, TypeError, AttributeError):
            return False

    async def hash(self, password: str) -> str:
        """Hash *password*; raises ``ValueError`` for an empty string."""
        return await asyncio.to_thread(self.hash_sync, password)

    async def verify(self, password: str, password_hash: str) -> bool:
        """Return ``True`` if *password* matches; never raises on mismatch."""
        return await asyncio.to_thread(self.verify_sync, password, password_hash)

    async def verify_decoy(self, password: str) -> bool:
        """Spend one verification on a throwaway hash; always ``False``."""
        await self.verify(password, self._decoy_hash)
        return False
