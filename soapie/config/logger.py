"""Logging for the soapie package.

Everything logs under the ``soapie`` logger: a console handler at LOG_LEVEL and
a daily-rotating debug file under LOG_DIR. Records still propagate, so host
applications and pytest's caplog see them too.
"""

import json
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from soapie.config.settings import settings

ROOT_LOGGER = "soapie"

_configured = False


def parse_level(name: str, default: int) -> tuple[int, bool]:
    """Map a level name to its number; unknown names give ``(default, False)``."""
    level = logging.getLevelName((name or "").strip().upper())
    if isinstance(level, int):
        return level, True
    return default, False


def _file_handler(formatter: logging.Formatter) -> tuple[logging.Handler | None, list[str]]:
    problems: list[str] = []
    level, ok = parse_level(settings.LOG_FILE_LEVEL, logging.DEBUG)
    if not ok:
        problems.append(f"LOG_FILE_LEVEL {settings.LOG_FILE_LEVEL!r} unknown, using DEBUG")
    backups = settings.LOG_FILE_BACKUP_COUNT
    if backups < 0:
        problems.append(f"LOG_FILE_BACKUP_COUNT {backups} is negative, using 7")
        backups = 7

    log_dir = Path(settings.LOG_DIR)
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = TimedRotatingFileHandler(
            filename=str(log_dir / settings.LOG_FILE_NAME),
            when=settings.LOG_FILE_WHEN,
            interval=settings.LOG_FILE_INTERVAL,
            backupCount=backups,
            encoding=settings.LOG_FILE_ENCODING,
        )
    except (OSError, ValueError) as exc:
        problems.append(f"no debug file under {log_dir}: {exc}")
        return None, problems
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler, problems


def configure_logging() -> None:
    global _configured
    if _configured:
        return
    _configured = True

    root = logging.getLogger(ROOT_LOGGER)
    formatter = logging.Formatter(settings.LOG_FORMAT)
    console_level, console_ok = parse_level(settings.LOG_LEVEL, logging.INFO)

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(formatter)
    root.addHandler(console)

    file_handler, problems = _file_handler(formatter)
    if file_handler is not None:
        root.addHandler(file_handler)
    # Handlers do the filtering; the logger itself passes DEBUG.
    root.setLevel(min(console_level, logging.DEBUG))

    if not console_ok:
        problems.insert(0, f"LOG_LEVEL {settings.LOG_LEVEL!r} unknown, using INFO")
    for problem in problems:
        root.warning("[logger] %s", problem)


def get_logger(name: str | None = None) -> logging.Logger:
    configure_logging()
    if not name or name == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    if name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def truncate_for_log(text: str, limit: int | None = None) -> str:
    limit = settings.LOG_TRUNCATE if limit is None else limit
    if len(text) <= limit:
        return text
    return f"{text[:limit]} ...[truncated {len(text) - limit} chars]"


def log_stage(logger: logging.Logger, stage: str, content: Any) -> None:
    """Log what a pipeline stage produced, dumped to JSON and truncated."""
    if isinstance(content, BaseModel):
        content = content.model_dump(mode="json")
    if content is None:
        text = ""
    elif isinstance(content, str):
        text = content
    else:
        text = json.dumps(content, ensure_ascii=False, default=str)
    logger.info("[%s] output:\n%s", stage, truncate_for_log(text) if text else "[EMPTY]")
