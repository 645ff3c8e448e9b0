"""
Logging setup for the HelperHub API.

``configure_for_environment`` picks a profile from ``ENVIRONMENT``
(production / development / testing) and applies it with ``dictConfig``.
Module loggers come from ``get_logger`` so they all live under the
``helperhub`` namespace.
"""
import functools
import logging
import logging.config
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

FORMATS = {
    "simple": "%(levelname)s - %(name)s - %(message)s",
    "detailed": "%(asctime)s | %(levelname)-8s | %(name)-32s | %(funcName)-20s:%(lineno)-4d | %(message)s",
}

# ENVIRONMENT -> (level, write log files, console format); LOG_LEVEL overrides level
PROFILES = {
    "production": ("INFO", True, "detailed"),
    "development": ("DEBUG", True, "detailed"),
    "testing": ("WARNING", False, "simple"),
}

MAX_LOG_BYTES = 10 * 1024 * 1024


def _rotating_file(path: Path, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "detailed",
        "filename": str(path),
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": 5,
        "encoding": "utf8",
    }


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[str] = None,
    enable_file: bool = True,
    console_format: str = "detailed",
) -> None:
    """
    Configure console logging, plus daily rotating files when ``enable_file``.

    Files go to ``log_dir`` (default ``$LOG_DIR`` or ``logs``): everything in
    ``helperhub_<date>.log`` and ERROR and above again in
    ``helperhub_errors_<date>.log``.
    """
    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": console_format,
            "stream": "ext://sys.stdout",
        }
    }

    if enable_file:
        directory = Path(log_dir or os.getenv("LOG_DIR", "logs"))
        directory.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d")
        handlers["file"] = _rotating_file(directory / f"helperhub_{stamp}.log", level)
        handlers["error_file"] = _rotating_file(directory / f"helperhub_errors_{stamp}.log", "ERROR")

    app_handlers = list(handlers)
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {name: {"format": fmt, "datefmt": "%Y-%m-%d %H:%M:%S"} for name, fmt in FORMATS.items()},
        "handlers": handlers,
        "root": {"level": level, "handlers": app_handlers},
        "loggers": {
            # uvicorn installs its own handlers; route it through ours instead
            "uvicorn": {"level": "INFO", "handlers": app_handlers, "propagate": False},
            "uvicorn.access": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "pymongo": {"level": "WARNING"},
        },
    })

    get_logger("logging").info(
        f"Logging configured - level={level} files={'on' if enable_file else 'off'}"
    )


def configure_for_environment() -> None:
    environment = os.getenv("ENVIRONMENT", "development").lower()
    level, enable_file, console_format = PROFILES.get(environment, ("INFO", False, "detailed"))
    setup_logging(
        level=os.getenv("LOG_LEVEL", level).upper(),
        enable_file=enable_file,
        console_format=console_format,
    )


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``helperhub`` namespace; module names are used as-is."""
    if name == "helperhub" or name.startswith("helperhub."):
        return logging.getLogger(name)
    return logging.getLogger(f"helperhub.{name}")


def log_function_call(func):
    """Debug-log entry and duration of an async service method; failures at ERROR."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        started = time.perf_counter()
        logger.debug(f"Entering {func.__qualname__}")
        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            logger.error(f"{func.__qualname__} failed after {time.perf_counter() - started:.3f}s: {e}")
            raise
        logger.debug(f"{func.__qualname__} finished in {time.perf_counter() - started:.3f}s")
        return result

    return wrapper


class PerformanceMonitor:
    """Time a block; slow blocks are logged at WARNING"""

    def __init__(self, operation_name: str, logger: logging.Logger = None, threshold_ms: float = 1000):
        self.operation_name = operation_name
        self.logger = logger or get_logger("performance")
        self.threshold_ms = threshold_ms
        self.started = None

    def __enter__(self):
        self.started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed_ms = (time.perf_counter() - self.started) * 1000
        if exc_type is not None:
            self.logger.warning(f"{self.operation_name} aborted after {elapsed_ms:.2f}ms: {exc_val}")
        elif elapsed_ms > self.threshold_ms:
            self.logger.warning(f"{self.operation_name} took {elapsed_ms:.2f}ms (threshold {self.threshold_ms}ms)")
        else:
            self.logger.info(f"{self.operation_name} completed in {elapsed_ms:.2f}ms")
        return False
