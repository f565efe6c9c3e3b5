"""Pydantic settings loaded from .env, with secret bootstrap."""

from __future__ import annotations

import logging
import os
import secrets as _secrets
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ConfigDict
from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent

_logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Secret auto-generation
# ---------------------------------------------------------------------------


def _ensure_secrets(env_file: Path) -> None:
    """Generate JWT_SECRET if missing, append to .env."""
    if os.environ.get("JWT_SECRET"):
        return

    key = _secrets.token_urlsafe(32)
    os.environ["JWT_SECRET"] = key
    env_file.parent.mkdir(parents=True, exist_ok=True)
    with open(env_file, "a") as f:
        f.write(f"\nJWT_SECRET={key}\n")
    _logger.warning("JWT_SECRET was not set; generated one and saved it to %s", env_file)


# ---------------------------------------------------------------------------
# Bootstrap: load .env, generate secrets
# ---------------------------------------------------------------------------

_env_file = BASE_DIR.parent / ".env"
load_dotenv(_env_file)
_ensure_secrets(_env_file)


class Settings(BaseSettings):
    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    TOKEN_TTL_HOURS: int = 24
    BCRYPT_ROUNDS: int = 10

    ENVIRONMENT: str = "development"  # development | production
    DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'moodmate.sqlite3'}"
    CORS_ALLOW_ALL_ORIGINS: bool = True

    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""
    LOG_MAX_BYTES: int = 10_485_760
    LOG_BACKUP_COUNT: int = 5

    LLM_PROVIDER: str = "google"  # google | openai | anthropic
    LLM_MODEL: str = "gemini-1.5-flash"
    LLM_API_KEY: str = os.environ.get("GEMINI_API_KEY", "")
    LLM_TEMPERATURE: float = 0.9
    LLM_TOP_P: float = 1.0
    LLM_TOP_K: int = 1
    LLM_MAX_OUTPUT_TOKENS: int = 2048
    LLM_SAFETY_THRESHOLD: str = "BLOCK_MEDIUM_AND_ABOVE"
    LLM_TIMEOUT_SECONDS: float = 30.0
    LLM_MAX_RETRIES: int = 0

    CHAT_CONTEXT_MAX_MESSAGES: int = 20  # 0 = whole transcript

    model_config = ConfigDict(
        env_file=str(BASE_DIR.parent / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


settings = Settings()
