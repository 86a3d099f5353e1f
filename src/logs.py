"""
Logging for otsu-hash.

The library only ever emits records under the `otsuhash` namespace and
installs a NullHandler, so embedding applications stay in control. Scripts
and tests that want output call `init_logging()` once:

    from logs import init_logging, get_logger

    init_logging(level="DEBUG")
    log = get_logger(__name__)
    log.debug("threshold=%s", 127.0)

Env vars:
    OTSUHASH_LOG_LEVEL   = DEBUG|INFO|WARNING|ERROR (default WARNING)
    OTSUHASH_LOG_JSON    = 0|1  (default 0)
    OTSUHASH_LOG_TO_FILE = 0|1  (default 0)
    OTSUHASH_LOG_FILE    = path to log file (default .otsuhash/logs/otsuhash.log)
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "otsuhash"


@dataclass
class LogConfig:
    level: str = "WARNING"
    json: bool = False
    to_file: bool = False
    file_path: Path = Path(".otsuhash/logs/otsuhash.log")
    max_bytes: int = 1024 * 1024  # 1 MB per file
    backup_count: int = 2


_CONSOLE = Console(stderr=True, highlight=False, soft_wrap=True)
_HANDLERS: List[logging.Handler] = []

logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())


class JsonFormatter(logging.Formatter):
    """One JSON object per record, stable keys."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "level": record.levelname,
            "time": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "logger": record.name,
            "msg": record.getMessage(),
            "file": record.filename,
            "line": record.lineno,
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _resolve_config(
    level: Optional[str],
    json_out: Optional[bool],
    to_file: Optional[bool],
    file_path: Optional[Path],
) -> LogConfig:
    default = LogConfig()
    return LogConfig(
        level=(level or os.getenv("OTSUHASH_LOG_LEVEL") or default.level).upper(),
        json=(
            json_out
            if json_out is not None
            else os.getenv("OTSUHASH_LOG_JSON", "0") == "1"
        ),
        to_file=(
            to_file
            if to_file is not None
            else os.getenv("OTSUHASH_LOG_TO_FILE", "0") == "1"
        ),
        file_path=Path(
            os.getenv("OTSUHASH_LOG_FILE") or (file_path or default.file_path)
        ),
    )


def init_logging(
    level: Optional[str] = None,
    *,
    json: Optional[bool] = None,
    to_file: Optional[bool] = None,
    file_path: Optional[Path] = None,
) -> logging.Logger:
    """
    Attach sinks to the `otsuhash` logger. Safe to call multiple times: a
    repeated call only updates the level.

    - Rich console on stderr by default, JSON lines when `json` is set.
    - Optional rotating file sink.
    - Honors env vars when arguments are not provided.
    """
    cfg = _resolve_config(level, json, to_file, file_path)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, cfg.level, logging.WARNING))

    if _HANDLERS:
        return logger

    if cfg.json:
        console_handler: logging.Handler = logging.StreamHandler(stream=sys.stderr)
        console_handler.setFormatter(JsonFormatter())
    else:
        console_handler = RichHandler(
            console=_CONSOLE, show_time=True, show_path=False, markup=False
        )
        console_handler.setFormatter(logging.Formatter("%(message)s"))
    _HANDLERS.append(console_handler)

    if cfg.to_file:
        cfg.file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            cfg.file_path,
            maxBytes=cfg.max_bytes,
            backupCount=cfg.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(
            JsonFormatter()
            if cfg.json
            else logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        _HANDLERS.append(file_handler)

    for handler in _HANDLERS:
        logger.addHandler(handler)
    logger.propagate = False

    # Decoder chatter (PNG chunks etc.) is never interesting here.
    logging.getLogger("PIL").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return logger


def reset_logging() -> None:
    """Detach and close the sinks installed by `init_logging()`."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in _HANDLERS:
        logger.removeHandler(handler)
        handler.close()
    _HANDLERS.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Namespaced logger below `otsuhash`. Module names are prefixed so that
    `get_logger(__name__)` in `otsu.py` yields `otsuhash.otsu`.
    """
    if not name or name == LOGGER_NAME:
        return logging.getLogger(LOGGER_NAME)
    if name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
