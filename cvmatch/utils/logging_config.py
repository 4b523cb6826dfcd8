"""
Logging setup for the CV match service.

All loggers live under the ``cvmatch`` namespace. Output goes to stdout and,
outside of tests, to rotating files under ``LOG_DIR``.
"""
import functools
import inspect
import logging
import logging.config
import os
import time
from datetime import date
from pathlib import Path
from typing import Dict, Any

ROOT_LOGGER = "cvmatch"

FORMATS = {
    "simple": "%(levelname)s - %(name)s - %(message)s",
    "detailed": "%(asctime)s | %(levelname)-8s | %(name)-32s | %(funcName)s:%(lineno)d | %(message)s",
}

# (level, console, file, format) per ENVIRONMENT; None level means LOG_LEVEL
PROFILES = {
    "production": (None, True, True, "detailed"),
    "development": ("DEBUG", True, True, "detailed"),
    "testing": ("WARNING", True, False, "simple"),
}

# Chatty third-party loggers and the level they are held at
QUIET_LOGGERS = {"pdfminer": "ERROR", "urllib3": "WARNING", "multipart": "WARNING"}

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
    enable_console: bool = True,
    enable_file: bool = True,
    format_style: str = "detailed"
) -> None:
    """
    Configure the root, uvicorn and quiet third-party loggers

    Args:
        level: Logging level name
        enable_console: Log to stdout
        enable_file: Also write cvmatch_<date>.log and cvmatch_errors_<date>.log under LOG_DIR
        format_style: 'simple' or 'detailed'
    """
    handlers: Dict[str, Any] = {}

    if enable_console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": format_style if format_style in FORMATS else "detailed",
            "stream": "ext://sys.stdout",
        }

    if enable_file:
        log_dir = Path(os.getenv("LOG_DIR", "logs"))
        log_dir.mkdir(parents=True, exist_ok=True)
        stamp = date.today().strftime("%Y%m%d")
        handlers["file"] = _rotating_file(log_dir / f"cvmatch_{stamp}.log", level)
        handlers["error_file"] = _rotating_file(log_dir / f"cvmatch_errors_{stamp}.log", "ERROR")

    loggers: Dict[str, Any] = {
        name: {"level": quiet_level, "propagate": True} for name, quiet_level in QUIET_LOGGERS.items()
    }
    server_handlers = [h for h in ("console", "file") if h in handlers]
    for name in ("uvicorn", "uvicorn.access"):
        loggers[name] = {"level": "INFO", "handlers": server_handlers, "propagate": False}

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            style: {"format": fmt, "datefmt": "%Y-%m-%d %H:%M:%S"} for style, fmt in FORMATS.items()
        },
        "handlers": handlers,
        "root": {"level": level, "handlers": list(handlers)},
        "loggers": loggers,
    })

    get_logger("logging").info(
        f"Logging configured - level={level}, console={enable_console}, file={enable_file}"
    )


def configure_for_environment():
    """Apply the logging profile named by ENVIRONMENT (development by default)"""
    environment = os.getenv("ENVIRONMENT", "development").lower()
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    level, console, to_file, style = PROFILES.get(environment, (log_level, True, False, "detailed"))
    setup_logging(level=level or log_level, enable_console=console, enable_file=to_file, format_style=style)


def get_logger(name: str) -> logging.Logger:
    """Logger under the cvmatch namespace; module names already in it are kept as is."""
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def log_function_call(func):
    """Log entry, duration and failures of a function or coroutine at DEBUG/ERROR."""
    logger = get_logger(func.__module__)

    def entering(args, kwargs):
        logger.debug(f"Entering {func.__name__} with args={len(args)}, kwargs={list(kwargs)}")
        return time.perf_counter()

    def failed(start, exc):
        logger.error(f"Error in {func.__name__} after {time.perf_counter() - start:.3f}s: {exc}")

    def completed(start):
        logger.debug(f"Completed {func.__name__} in {time.perf_counter() - start:.3f}s")

    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            start = entering(args, kwargs)
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                failed(start, e)
                raise
            completed(start)
            return result

        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = entering(args, kwargs)
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            failed(start, e)
            raise
        completed(start)
        return result

    return wrapper


class PerformanceMonitor:
    """Times a block; warns past ``threshold_ms``. ``elapsed_ms`` is set on exit."""

    def __init__(self, operation_name: str, logger: logging.Logger = None, threshold_ms: float = 1000):
        self.operation_name = operation_name
        self.logger = logger or get_logger("performance")
        self.threshold_ms = threshold_ms
        self.elapsed_ms = None
        self._start = None

    def __enter__(self):
        self._start = time.perf_counter()
        self.logger.debug(f"Starting {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000

        if exc_type is not None:
            self.logger.error(f"{self.operation_name} failed after {self.elapsed_ms:.2f}ms: {exc_val}")
        elif self.elapsed_ms > self.threshold_ms:
            self.logger.warning(
                f"{self.operation_name} took {self.elapsed_ms:.2f}ms (threshold {self.threshold_ms}ms)"
            )
        else:
            self.logger.info(f"{self.operation_name} completed in {self.elapsed_ms:.2f}ms")
        return False
