"""Cookie / Bearer token authentication dependencies."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from database import get_db
from errors import AuthError
from logging_config import bind_user
from schemas.auth import UserOut
from services import auth as auth_service

AUTH_COOKIE = "auth_token"

bearer_scheme = HTTPBearer(auto_error=False)


def extract_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = None,
) -> str | None:
    """Cookie first, then ``Authorization: Bearer``."""
    token = request.cookies.get(AUTH_COOKIE)
    if token:
        return token
    if credentials and credentials.credentials:
        return credentials.credentials
    return None


def get_current_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    token = extract_token(request, credentials)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return token


def get_current_user(
    request: Request,
    token: str = Depends(get_current_token),
    db: Session = Depends(get_db),
) -> UserOut:
    """FastAPI dependency: validate the session token and return the caller."""
    try:
        user = auth_service.verify_token(db, token)
    except AuthError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    request.state.user = user
    bind_user(user.id)
    return user


def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> UserOut | None:
    """Like get_current_user, but anonymous callers get ``None`` instead of a 401."""
    token = extract_token(request, credentials)
    if not token:
        return None
    try:
        user = auth_service.verify_token(db, token)
    except AuthError:
        return None
    request.state.user = user
    bind_user(user.id)
    return user
