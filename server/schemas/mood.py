"""Mood log schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field, StrictInt


class MoodCreateRequest(BaseModel):
    value: StrictInt = Field(ge=0, le=100)
