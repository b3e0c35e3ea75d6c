"""
프로젝트 공통 로깅 설정.

- 콘솔: WARNING 이상 (LOG_CONSOLE_LEVEL 로 변경)
- 통합: logs/app.log (INFO 이상)
- 에러: logs/error.log (ERROR 이상)
- 카테고리: logs/chat.log, logs/websocket.log, logs/platforms.log
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


class _PrefixFilter(logging.Filter):
    """logger name prefix 기반 필터."""

    def __init__(self, *prefixes: str):
        super().__init__()
        self._prefixes = tuple(p for p in prefixes if p)

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name or ""
        return any(name.startswith(p) for p in self._prefixes)


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent.parent


def _mk_rotating_handler(path: Path, level: int, fmt: logging.Formatter) -> RotatingFileHandler:
    max_mb = int(os.environ.get("LOG_MAX_MB", "10"))
    backups = int(os.environ.get("LOG_BACKUP_COUNT", "5"))
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=max_mb * 1024 * 1024,
        backupCount=backups,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(fmt)
    return handler


def _level_from_env(name: str, default: int) -> int:
    level_name = (os.environ.get(name) or "").upper()
    return getattr(logging, level_name, default) if level_name else default


def setup_logging(log_dir: Optional[Path] = None) -> Path:
    """루트 로거/핸들러를 재설정하고 로그 디렉터리 경로 반환."""
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG)

    log_dir = Path(log_dir) if log_dir else _project_root() / "logs"
    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    ch = logging.StreamHandler()
    ch.setLevel(_level_from_env("LOG_CONSOLE_LEVEL", logging.WARNING))
    ch.setFormatter(fmt)
    root.addHandler(ch)

    app_h = _mk_rotating_handler(log_dir / "app.log", logging.INFO, fmt)
    root.addHandler(app_h)

    err_h = _mk_rotating_handler(log_dir / "error.log", logging.ERROR, fmt)
    root.addHandler(err_h)

    chat_h = _mk_rotating_handler(log_dir / "chat.log", logging.DEBUG, fmt)
    chat_h.addFilter(_PrefixFilter("chat_overlay.chat", "chat_overlay.overlay.router"))
    root.addHandler(chat_h)

    ws_h = _mk_rotating_handler(log_dir / "websocket.log", logging.DEBUG, fmt)
    ws_h.addFilter(_PrefixFilter(
        "chat_overlay.overlay.registry",
        "chat_overlay.overlay.server",
        "chat_overlay.overlay.state",
    ))
    root.addHandler(ws_h)

    platforms_h = _mk_rotating_handler(log_dir / "platforms.log", logging.DEBUG, fmt)
    platforms_h.addFilter(_PrefixFilter("chat_overlay.platforms", "chat_overlay.cache"))
    root.addHandler(platforms_h)

    # noisy logger 억제 (파일에는 남기고 싶으면 WARNING, 완전 억제는 ERROR)
    noisy_level = _level_from_env("NOISY_LOG_LEVEL", logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(noisy_level)
    logging.getLogger("httpx").setLevel(noisy_level)
    logging.getLogger("httpcore").setLevel(noisy_level)

    return log_dir
