"""Logging setup: console output plus rotating log files under ``log_dir``."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_MAX_BYTES = 10 * 1024 * 1024
_BACKUP_COUNT = 5

# Loggers that also get a file of their own, always at DEBUG.
DEDICATED_LOGS = {
    "tools.agent_sdk_client": "ai_calls.log",
    "editor.autosave": "autosave.log",
}


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        str(path),
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[str | Path] = None,
    console_enabled: bool = True,
) -> None:
    """Configure the root logger and the dedicated per-component logs.

    Calling it again replaces the handlers installed by a previous call.

    Args:
        level: Level for the console and ``penwright.log``.
        log_dir: Directory for log files. Defaults to ./data/logs.
        console_enabled: Also log to stderr (the CLI enables this with ``--verbose``).
    """
    log_dir = Path(log_dir or "./data/logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    root_logger.addHandler(_rotating_handler(log_dir / "penwright.log", level, formatter))

    for name, filename in DEDICATED_LOGS.items():
        component_logger = logging.getLogger(name)
        component_logger.setLevel(logging.DEBUG)
        for handler in list(component_logger.handlers):
            if isinstance(handler, RotatingFileHandler):
                component_logger.removeHandler(handler)
                handler.close()
        component_logger.addHandler(_rotating_handler(log_dir / filename, logging.DEBUG, formatter))

    logging.getLogger(__name__).debug("Logging initialized: level=%s, dir=%s", level, log_dir)
