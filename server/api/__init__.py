"""FastAPI router aggregation."""

from fastapi import APIRouter

from api.auth import router as auth_router
from api.account import router as account_router
from api.chat import router as chat_router
from api.moods import router as moods_router

api_router = APIRouter(prefix="/api")

api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(account_router, tags=["account"])
api_router.include_router(chat_router, prefix="/chat", tags=["chat"])
api_router.include_router(moods_router, prefix="/moods", tags=["moods"])
