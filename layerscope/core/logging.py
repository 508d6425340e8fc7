"""Central logging configuration."""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
import os
import sys
from pathlib import Path

LOG_DIR = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "layerscope" / "logs"
LOG_FILE = LOG_DIR / "layerscope.log"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def resolve_level(level: int | str | None, default: int = logging.INFO) -> int:
    """Turn a level name from settings or the command line into a logging level."""

    if level is None:
        return default
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else default


def configure_logging(level: int | str | None = logging.INFO, log_file: Path | None = None) -> None:
    """Configure console and rotating file logging once per process."""

    root_logger = logging.getLogger()
    root_logger.setLevel(resolve_level(level))
    if root_logger.handlers:
        return

    target = Path(log_file) if log_file else LOG_FILE
    target.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    file_handler = RotatingFileHandler(target, maxBytes=512_000, backupCount=5)
    file_handler.setFormatter(formatter)

    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Return a module-level logger, configuring logging lazily."""

    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)
