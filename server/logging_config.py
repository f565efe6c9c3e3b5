"""Request-aware logging for the MoodMate API.

Every record handled by our handlers carries the process role, the request id
and, once a route has authenticated the caller, the user id::

    2026-03-02 09:14:07 [Server][Req 1a2b3c4d][User 7][INFO] services.chat:118 - ...

``main.request_context`` opens a RequestContext per HTTP request and
``auth.py`` binds the user onto it. Dependencies run in the threadpool with a
copy of the context, so the RequestContext object is mutated rather than
replaced; the access line logged by the middleware then sees the user too.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from contextvars import ContextVar, Token
from dataclasses import dataclass
from pathlib import Path

STREAM_HANDLER = "_moodmate_stream"
FILE_HANDLER = "_moodmate_file"

LINE_FORMAT = "%(asctime)s %(context)s[%(levelname)s] %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

QUIET_LOGGERS = ("httpx", "httpcore", "urllib3", "google", "grpc", "multipart")


@dataclass
class RequestContext:
    request_id: str
    user_id: int | None = None


request_context_var: ContextVar[RequestContext | None] = ContextVar("request_context", default=None)


def begin_request(request_id: str) -> Token:
    return request_context_var.set(RequestContext(request_id))


def end_request(token: Token) -> None:
    request_context_var.reset(token)


def bind_user(user_id: int) -> None:
    """Attach the authenticated caller to the current request, if any."""
    ctx = request_context_var.get()
    if ctx is not None:
        ctx.user_id = user_id


class ContextFilter(logging.Filter):
    """Stamps ``role``, ``request_id``, ``user_id`` and the rendered ``context`` prefix."""

    def __init__(self, role: str) -> None:
        super().__init__()
        self.role = role

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = request_context_var.get()
        record.role = self.role  # type: ignore[attr-defined]
        record.request_id = ctx.request_id if ctx else ""  # type: ignore[attr-defined]
        record.user_id = ctx.user_id if ctx else None  # type: ignore[attr-defined]

        prefix = f"[{self.role}]" if self.role else ""
        if ctx is not None:
            prefix += f"[Req {ctx.request_id[:8]}]"
            if ctx.user_id is not None:
                prefix += f"[User {ctx.user_id}]"
        record.context = prefix  # type: ignore[attr-defined]
        return True


def _install(root: logging.Logger, handler: logging.Handler, name: str, ctx_filter: ContextFilter) -> None:
    handler.name = name
    handler.addFilter(ctx_filter)
    handler.setFormatter(logging.Formatter(LINE_FORMAT, DATE_FORMAT))
    root.addHandler(handler)


def setup_logging(role: str) -> None:
    """Install the MoodMate handlers on the root logger. Later calls are no-ops."""
    from config import settings

    root = logging.getLogger()
    if any(h.name == STREAM_HANDLER for h in root.handlers):
        return

    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    ctx_filter = ContextFilter(role)

    _install(root, logging.StreamHandler(sys.stderr), STREAM_HANDLER, ctx_filter)
    if settings.LOG_FILE:
        log_path = Path(settings.LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        _install(root, rotating, FILE_HANDLER, ctx_filter)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # uvicorn errors go through our handlers; request lines come from the access logger in main.py
    for name in ("uvicorn", "uvicorn.error"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.propagate = True
    logging.getLogger("uvicorn.access").disabled = True
