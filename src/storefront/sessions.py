"""Signed admin session tokens (HS256 JWT) carried in an HTTP-only cookie.

The token holds only the admin identifier and an expiry. Whether that
identifier still names an account is checked by AdminDirectory on every
request.
"""

from __future__ import annotations

import logging
import time

import jwt

logger = logging.getLogger(__name__)

_ALGORITHM = "HS256"
_AUDIENCE = "storefront-admin"


class SessionCodec:
    """Issue and resolve session tokens."""

    def __init__(self, secret: str, max_age_secs: int) -> None:
        self._secret = secret
        self._max_age = max_age_secs

    @property
    def max_age(self) -> int:
        return self._max_age

    def issue(self, admin_id: str) -> str:
        now = int(time.time())
        claims = {
            "sub": admin_id,
            "aud": _AUDIENCE,
            "iat": now,
            "exp": now + self._max_age,
        }
        return jwt.encode(claims, self._secret, algorithm=_ALGORITHM)

    def resolve(self, token: str | None) -> str | None:
        """Return the admin identifier, or None for a missing/invalid token."""
        if not token:
            return None
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                audience=_AUDIENCE,
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            logger.info("Admin session expired.")
            return None
        except jwt.InvalidTokenError:
            logger.warning("Rejected malformed admin session token.")
            return None
        sub = claims.get("sub")
        return sub if isinstance(sub, str) and sub else None
