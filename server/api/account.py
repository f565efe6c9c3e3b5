"""Profile and account management endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.auth import clear_auth_cookie
from auth import get_current_user, get_optional_user
from database import get_db
from errors import AuthError, ValidationError
from schemas.auth import ChangePasswordRequest, MessageResponse, UserOut
from services import auth as auth_service
from services.chat import ChatService, get_chat_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/profile")
def profile(user: UserOut = Depends(get_current_user)):
    return {"message": "Protected route accessed successfully", "user": user}


@router.get("/public-data")
def public_data(user: UserOut | None = Depends(get_optional_user)):
    greeting = f"Hello, {user.username}!" if user else "Hello, guest!"
    return {
        "message": greeting,
        "publicData": "This is public data that anyone can access",
    }


@router.post(
    "/change-password",
    response_model=MessageResponse,
    responses={400: {"description": "Current password is incorrect"}},
)
def change_password(
    payload: ChangePasswordRequest,
    user: UserOut = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        auth_service.change_password(db, user.id, payload.old_password, payload.new_password)
    except (AuthError, ValidationError) as exc:
        raise HTTPException(status_code=400, detail=exc.message)
    return {"message": "Password changed successfully"}


@router.delete("/delete-account", response_model=MessageResponse)
def delete_account(
    response: Response,
    user: UserOut = Depends(get_current_user),
    db: Session = Depends(get_db),
    chat: ChatService = Depends(get_chat_service),
):
    logger.info("Delete-account requested by user %d", user.id)
    try:
        auth_service.delete_account(db, user.id)
    except AuthError as exc:
        raise HTTPException(status_code=400, detail=exc.message)
    except SQLAlchemyError:
        raise HTTPException(status_code=400, detail="Failed to delete account")

    chat.clear(user.id)
    clear_auth_cookie(response)
    return {"message": "Account deleted successfully"}
