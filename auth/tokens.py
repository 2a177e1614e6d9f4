"""
Session token (JWT) creation and verification.

Tokens are HS256 JWTs carrying the user's ``id`` and ``email`` plus
``iat`` / ``exp``.  The secret is loaded from ``config.jwt_secret``
(env var: ``JWT_SECRET``) once, when the issuer is constructed.
"""

from __future__ import annotations

import time
from typing import Any, Dict

import jwt


class TokenIssuer:
    """Issues signed, expiring identity tokens."""

    def __init__(
        self,
        secret: str,
        expiry_seconds: int = 86400,
        algorithm: str = "HS256",
    ) -> None:
        if not secret:
            raise ValueError("token signing secret must not be empty")
        self._secret = secret
        self._expiry_seconds = expiry_seconds
        self._algorithm = algorithm

    def __repr__(self) -> str:
        return f"TokenIssuer(algorithm={self._algorithm!r}, expiry_seconds={self._expiry_seconds})"

    @property
    def expiry_seconds(self) -> int:
        return self._expiry_seconds

    def issue(self, claims: Dict[str, Any]) -> str:
        """Create a signed token bound to ``claims["id"]`` and ``claims["email"]``."""
        now = int(time.time())
        payload = {
            "id": str(claims["id"]),
            "email": claims["email"],
            "iat": now,
            "exp": now + self._expiry_seconds,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Dict[str, str]:
        """
        Verify *token* and return its ``{"id", "email"}`` claims.

        Raises ``jwt.ExpiredSignatureError`` once the token has expired and
        ``jwt.InvalidTokenError`` for any other failure (bad signature,
        malformed token, missing claims).
        """
        if token.startswith("Bearer "):
            token = token[7:]
        payload = jwt.decode(
            token,
            self._secret,
            algorithms=[self._algorithm],
            options={"require": ["exp", "iat", "id", "email"]},
        )
        return {"id": payload["id"], "email": payload["email"]}
