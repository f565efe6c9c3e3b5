"""Mood log endpoints — record a 0–100 mood and read it back."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import get_current_user
from database import get_db
from models.mood import MoodEntry
from schemas.auth import UserOut
from schemas.mood import MoodCreateRequest

router = APIRouter()


def serialize_mood(entry: MoodEntry) -> dict:
    return {
        "id": entry.id,
        "value": entry.value,
        "createdAt": entry.created_at.isoformat() if entry.created_at else None,
    }


@router.post("", status_code=201, responses={400: {"description": "Value must be 0–100"}})
def record_mood(
    payload: MoodCreateRequest,
    user: UserOut = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    entry = MoodEntry(user_id=user.id, value=payload.value)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return {"message": "Mood saved", "entry": serialize_mood(entry)}


@router.get("")
def list_moods(
    user: UserOut = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    entries = (
        db.query(MoodEntry)
        .filter(MoodEntry.user_id == user.id)
        .order_by(MoodEntry.created_at, MoodEntry.id)
        .all()
    )
    return {"history": [serialize_mood(e) for e in entries]}
