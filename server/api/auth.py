"""Register / login / logout endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth import AUTH_COOKIE, get_current_token, get_current_user
from config import settings
from database import get_db
from errors import AuthError, ConflictError, ValidationError
from schemas.auth import AuthResponse, LoginRequest, MessageResponse, RegisterRequest, UserOut
from services import auth as auth_service
from services.chat import ChatService, get_chat_service
from services.tokens import token_ttl

logger = logging.getLogger(__name__)

router = APIRouter()


def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        AUTH_COOKIE,
        token,
        max_age=int(token_ttl().total_seconds()),
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(
        AUTH_COOKIE,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


@router.post(
    "/register",
    status_code=201,
    response_model=AuthResponse,
    responses={400: {"description": "Username or email taken, or invalid input"}},
)
def register(payload: RegisterRequest, response: Response, db: Session = Depends(get_db)):
    try:
        result = auth_service.register(db, payload.username, payload.email, payload.password)
    except (ConflictError, ValidationError) as exc:
        raise HTTPException(status_code=400, detail=exc.message)

    set_auth_cookie(response, result.token)
    return {"message": "User registered successfully", "user": result.user}


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"description": "Invalid credentials"}},
)
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)):
    try:
        result = auth_service.login(db, payload.username_or_email, payload.password)
    except AuthError as exc:
        raise HTTPException(status_code=401, detail=exc.message)

    set_auth_cookie(response, result.token)
    return {"message": "Login successful", "user": result.user}


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    token: str = Depends(get_current_token),
    user: UserOut = Depends(get_current_user),
    db: Session = Depends(get_db),
    chat: ChatService = Depends(get_chat_service),
):
    try:
        auth_service.logout(db, token)
    except SQLAlchemyError:
        logger.exception("Logout failed for user %d", user.id)
        raise HTTPException(status_code=500, detail="Failed to logout")

    chat.clear(user.id)
    clear_auth_cookie(response)
    return {"message": "Logged out successfully"}
