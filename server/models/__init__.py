"""SQLAlchemy models — re-export all."""

from models.user import User, UserSession  # noqa: F401
from models.mood import MoodEntry  # noqa: F401
