"""
Logging setup for the content pipeline.

Console output is colored and short-named for local runs. Files rotate at
UTC midnight next to a separate errors.log. With structured logging on,
every handler writes JSON lines carrying the pipeline context (date,
language, provider) when a record has it.
"""

import json
import logging
import logging.handlers
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

PACKAGE_PREFIX = "daily_wisdom."
CONTEXT_FIELDS = ("date", "language", "provider")

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
ERROR_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"


def short_name(logger_name: str) -> str:
    """'daily_wisdom.services.deepl_translator' -> 'services.deepl_translator'"""
    if logger_name.startswith(PACKAGE_PREFIX):
        return logger_name[len(PACKAGE_PREFIX):]
    return logger_name


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record):
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": short_name(record.name),
            "msg": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


class ColoredConsoleFormatter(logging.Formatter):
    LEVEL_COLORS = {
        logging.DEBUG: "\033[2m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def format(self, record):
        color = self.LEVEL_COLORS.get(record.levelno, "")
        line = (
            f"{color}{self.formatTime(record, '%H:%M:%S')} {record.levelname[0]} "
            f"{short_name(record.name)}: {record.getMessage()}{self.RESET}"
        )
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[str] = None,
    enable_file_logging: bool = True,
    enable_structured_logging: bool = False,
) -> None:
    """
    Replace the root logger's handlers.

    Args:
        log_level: Root level name (DEBUG, INFO, ...); unknown names fall back to INFO
        log_dir: Where daily_wisdom.log and errors.log go (defaults to ./logs)
        enable_file_logging: Write the rotating file and the error log
        enable_structured_logging: JSON lines on every handler instead of text
    """
    level = logging.getLevelName(log_level.upper())
    root = logging.getLogger()
    root.setLevel(level if isinstance(level, int) else logging.INFO)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(StructuredFormatter() if enable_structured_logging else ColoredConsoleFormatter())
    root.addHandler(console)

    if enable_file_logging:
        directory = Path(log_dir or "logs")
        directory.mkdir(parents=True, exist_ok=True)

        rotating = logging.handlers.TimedRotatingFileHandler(
            directory / "daily_wisdom.log", when="midnight", backupCount=14, encoding="utf-8", utc=True
        )
        rotating.setFormatter(StructuredFormatter() if enable_structured_logging else logging.Formatter(FILE_FORMAT))
        root.addHandler(rotating)

        errors = logging.FileHandler(directory / "errors.log", encoding="utf-8")
        errors.setLevel(logging.ERROR)
        errors.setFormatter(logging.Formatter(ERROR_FORMAT))
        root.addHandler(errors)

    # google-genai and aiohttp log every request at INFO/DEBUG
    for noisy in ("aiohttp.access", "google_genai", "httpx", "aiosqlite"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


class PerformanceTracker:
    """Times a block and logs how it ended."""

    def __init__(self, operation_name: str, logger: Optional[logging.Logger] = None):
        self.operation_name = operation_name
        self.logger = logger or logging.getLogger(__name__)
        self.duration_ms: float = 0.0
        self._started: Optional[float] = None

    def __enter__(self):
        self._started = time.perf_counter()
        self.logger.debug(f"⏱️ Starting: {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self._started) * 1000
        if exc_type is not None:
            self.logger.error(f"💥 Failed: {self.operation_name} after {self.duration_ms:.0f}ms - {exc_val}")
        else:
            self.logger.info(f"✅ Completed: {self.operation_name} in {self.duration_ms:.0f}ms")
        return False
