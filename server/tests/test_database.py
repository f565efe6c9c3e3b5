"""Tests for database.py — engine construction and SQLite pragmas."""

from __future__ import annotations

from sqlalchemy import text

from database import make_engine
from models.mood import MoodEntry
from models.user import User, UserSession


def _pragma(engine, name):
    with engine.connect() as conn:
        return conn.execute(text(f"PRAGMA {name}")).scalar()


def test_memory_engine_enforces_foreign_keys():
    engine = make_engine("sqlite:///:memory:")
    assert _pragma(engine, "foreign_keys") == 1
    engine.dispose()


def test_memory_engine_shares_one_database():
    engine = make_engine("sqlite:///:memory:")
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE t (x INTEGER)"))
    with engine.connect() as conn:
        assert conn.execute(text("SELECT count(*) FROM t")).scalar() == 0
    engine.dispose()


def test_file_engine_uses_wal(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'moodmate.sqlite3'}")
    assert _pragma(engine, "journal_mode") == "wal"
    assert _pragma(engine, "foreign_keys") == 1
    engine.dispose()


def test_deleting_user_row_cascades(db, user, session_token):
    db.add(MoodEntry(user_id=user.id, value=50))
    db.commit()

    db.execute(text("DELETE FROM users WHERE id = :id"), {"id": user.id})
    db.commit()

    assert db.query(UserSession).count() == 0
    assert db.query(MoodEntry).count() == 0
    assert db.query(User).count() == 0
