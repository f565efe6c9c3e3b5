"""Account and session lifecycle: register, login, logout, verify, password, delete.

Tokens are only honoured while two independent checks both pass: the JWT
itself (signature + expiry) and its server-side session row (not revoked, not
past ``expires_at``). The row is what makes a token revocable before expiry.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

import bcrypt
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from config import settings
from errors import AuthError, ConflictError, ValidationError
from models.mood import MoodEntry
from models.user import User, UserSession
from schemas.auth import UserOut
from services.tokens import decode_token, issue_token, token_ttl

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_TOKEN = "Invalid or expired token"
USER_NOT_FOUND = "User not found"
USER_EXISTS = "User with this username or email already exists"

# bcrypt only looks at the first 72 bytes; newer releases reject longer input
MAX_PASSWORD_BYTES = 72


@dataclass(frozen=True)
class AuthResult:
    user: UserOut
    token: str


def _utcnow() -> datetime:
    # Stored timestamps are naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def _check_password(password: str) -> None:
    if not password:
        raise ValidationError("Password is required")
    if len(password.encode()) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")


def hash_password(password: str) -> str:
    _check_password(password)
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)).decode()


def verify_password(stored_hash: str, password: str) -> bool:
    """Verify password against stored bcrypt hash."""
    if not stored_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode(), stored_hash.encode())
    except (ValueError, UnicodeDecodeError):
        return False


@functools.lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return bcrypt.hashpw(b"moodmate-timing-equaliser", bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)).decode()


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


def _open_session(db: Session, user_id: int) -> str:
    """Issue a token and stage its session row (caller commits)."""
    token = issue_token(user_id)
    db.add(UserSession(
        user_id=user_id,
        token=token,
        expires_at=_utcnow() + token_ttl(),
        is_revoked=False,
    ))
    return token


def register(db: Session, username: str, email: str, password: str) -> AuthResult:
    username, email = username.strip(), email.strip()
    if not username or not email or not password:
        raise ValidationError("Username, email, and password are required")
    password_hash = hash_password(password)

    # Existence check, user insert and session insert share one transaction
    try:
        existing = (
            db.query(User)
            .filter(or_(User.username == username, User.email == email))
            .first()
        )
        if existing:
            raise ConflictError(USER_EXISTS)

        user = User(username=username, email=email, password_hash=password_hash)
        db.add(user)
        db.flush()
        token = _open_session(db, user.id)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(USER_EXISTS) from exc
    except ConflictError:
        db.rollback()
        raise

    logger.info("Registered user %d (%s)", user.id, user.username)
    return AuthResult(user=UserOut.model_validate(user), token=token)


def login(db: Session, username_or_email: str, password: str) -> AuthResult:
    username_or_email = username_or_email.strip()
    user = (
        db.query(User)
        .filter(or_(User.username == username_or_email, User.email == username_or_email))
        .first()
    )
    if user is None:
        # Same bcrypt cost as a real check so timing doesn't reveal unknown users
        verify_password(_dummy_hash(), password)
        raise AuthError(INVALID_CREDENTIALS)
    if not verify_password(user.password_hash, password):
        raise AuthError(INVALID_CREDENTIALS)

    token = _open_session(db, user.id)
    db.commit()
    logger.info("User %d logged in", user.id)
    return AuthResult(user=UserOut.model_validate(user), token=token)


def logout(db: Session, token: str) -> bool:
    """Revoke the session backing *token*. Returns False if none matched."""
    updated = (
        db.query(UserSession)
        .filter(UserSession.token == token)
        .update({UserSession.is_revoked: True})
    )
    db.commit()
    if updated:
        logger.info("Revoked %d session(s)", updated)
    return bool(updated)


def verify_token(db: Session, token: str) -> UserOut:
    user_id = decode_token(token)

    row = (
        db.query(UserSession)
        .filter(
            UserSession.token == token,
            UserSession.user_id == user_id,
            UserSession.is_revoked == False,  # noqa: E712
        )
        .first()
    )
    if row is None or row.expires_at <= _utcnow():
        logger.debug("Token for user %d has no live session", user_id)
        raise AuthError(INVALID_TOKEN)

    user = db.get(User, user_id)
    if user is None:
        logger.debug("Token references missing user %d", user_id)
        raise AuthError(USER_NOT_FOUND)

    return UserOut.model_validate(user)


# ---------------------------------------------------------------------------
# Account management
# ---------------------------------------------------------------------------


def change_password(db: Session, user_id: int, old_password: str, new_password: str) -> None:
    """Replace the password hash. Existing sessions stay valid."""
    user = db.get(User, user_id)
    if user is None:
        raise AuthError(USER_NOT_FOUND)
    if not verify_password(user.password_hash, old_password):
        raise AuthError("Current password is incorrect")

    user.password_hash = hash_password(new_password)
    db.commit()
    logger.info("User %d changed password", user_id)


def delete_account(db: Session, user_id: int) -> None:
    """Delete sessions, mood entries, then the user row, all in one transaction."""
    user = db.get(User, user_id)
    if user is None:
        raise AuthError(USER_NOT_FOUND)

    try:
        sessions = db.query(UserSession).filter(UserSession.user_id == user_id).delete()
        moods = db.query(MoodEntry).filter(MoodEntry.user_id == user_id).delete()
        db.delete(user)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to delete account for user %d", user_id)
        raise

    logger.info("Deleted user %d (%d sessions, %d mood entries)", user_id, sessions, moods)
