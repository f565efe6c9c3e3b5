"""Signed session tokens (HS256 JWT carrying the user id)."""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone

import jwt

from config import settings
from errors import AuthError

USER_CLAIM = "userId"


def token_ttl() -> timedelta:
    return timedelta(hours=settings.TOKEN_TTL_HOURS)


def issue_token(user_id: int, ttl: timedelta | None = None) -> str:
    """Mint a token for *user_id* expiring after *ttl* (default TOKEN_TTL_HOURS).

    ``jti`` keeps two tokens minted within the same second distinct, since
    each one backs its own unique session row.
    """
    now = datetime.now(timezone.utc)
    claims = {
        USER_CLAIM: user_id,
        "iat": now,
        "exp": now + (ttl if ttl is not None else token_ttl()),
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> int:
    """Verify signature and expiry; return the user id the token is bound to."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp", USER_CLAIM]},
        )
    except jwt.PyJWTError as exc:
        raise AuthError("Invalid or expired token") from exc

    user_id = payload.get(USER_CLAIM)
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise AuthError("Invalid or expired token")
    return user_id
