import inspect
import json
import logging
import re
import sys
import time
from contextvars import ContextVar
from functools import wraps
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Optional

# Correlation ID of the pipeline run or call session currently executing
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

# Patterns for secrets that should be masked in logs
SECRET_PATTERNS = [
    (re.compile(r'(api[_-]?key\s*[=:]\s*)["\']?[\w-]{20,}["\']?', re.IGNORECASE), r'\1***MASKED***'),
    (re.compile(r'(key\s*[=:]\s*)["\']?(?:sk|gsk|AIza)[\w-]+["\']?', re.IGNORECASE), r'\1***MASKED***'),
    (re.compile(r'(bearer\s+)[\w-]{20,}', re.IGNORECASE), r'\1***MASKED***'),
    (re.compile(r'(authorization\s*[=:]\s*)["\']?[\w-]{20,}["\']?', re.IGNORECASE), r'\1***MASKED***'),
]

LOG_FORMAT = "%(asctime)s - [%(correlation_id)s] - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

BASE_DIR = Path(__file__).resolve().parent.parent.parent
LOGS_DIR = BASE_DIR / "logs"
LOG_FILE = LOGS_DIR / "app.log"


def mask_secrets(text: str) -> str:
    """Mask sensitive values in text."""
    for pattern, replacement in SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class SecretMaskingFilter(logging.Filter):
    """Masks API keys and bearer tokens in log messages and their arguments."""

    def filter(self, record):
        if isinstance(record.msg, str):
            record.msg = mask_secrets(record.msg)
        if record.args and isinstance(record.args, tuple):
            record.args = tuple(
                mask_secrets(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )
        return True


class CorrelationIdFilter(logging.Filter):
    """Injects the current correlation ID into every record."""

    def filter(self, record):
        record.correlation_id = correlation_id_var.get() or "N/A"
        return True


class JsonFormatter(logging.Formatter):
    """Formatter for structured JSON logging."""

    def format(self, record):
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, 'correlation_id', 'N/A'),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        if hasattr(record, 'extra_data'):
            log_data.update(record.extra_data)
        return json.dumps(log_data)


class ColorFormatter(logging.Formatter):
    """Adds ANSI colors to console output by level."""

    grey = "\x1b[38;20m"
    yellow = "\x1b[33;20m"
    red = "\x1b[31;20m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"

    FORMATS = {
        logging.DEBUG: grey + LOG_FORMAT + reset,
        logging.INFO: grey + LOG_FORMAT + reset,
        logging.WARNING: yellow + LOG_FORMAT + reset,
        logging.ERROR: red + LOG_FORMAT + reset,
        logging.CRITICAL: bold_red + LOG_FORMAT + reset,
    }

    def format(self, record):
        formatter = logging.Formatter(self.FORMATS.get(record.levelno, LOG_FORMAT), datefmt=DATE_FORMAT)
        return formatter.format(record)


def setup_log_file(clear_log: bool = False) -> Path:
    """Creates the logs directory and optionally truncates the log file."""
    LOGS_DIR.mkdir(exist_ok=True)
    if clear_log and LOG_FILE.exists():
        LOG_FILE.write_text("")
    return LOG_FILE


def configure_logger(
    name: str = "app",
    log_level: int = logging.INFO,
    use_json: bool = False,
    mask_secrets: bool = True,
) -> logging.Logger:
    """
    Attaches console and rotating file handlers to the named logger.
    Calling it twice is a no-op.
    """
    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    if logger.handlers:
        return logger

    filters: list[logging.Filter] = [CorrelationIdFilter()]
    if mask_secrets:
        filters.append(SecretMaskingFilter())

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(ColorFormatter())

    # Rotate after 5MB, keep 5 backup files
    file_handler = RotatingFileHandler(LOG_FILE, maxBytes=5 * 1024 * 1024, backupCount=5, encoding="utf-8")
    if use_json:
        file_handler.setFormatter(JsonFormatter(datefmt=DATE_FORMAT))
    else:
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    for handler in (console_handler, file_handler):
        for log_filter in filters:
            handler.addFilter(log_filter)
        logger.addHandler(handler)

    return logger


def setup_logger(
    name: str = "app",
    log_level: int = logging.INFO,
    clear_log: bool = False,
    use_json: bool = False,
    mask_secrets: bool = True,
) -> logging.Logger:
    """
    Sets up a logger with console (colored) and file (rotating) handlers.

    Args:
        name: Logger name
        log_level: Logging level
        clear_log: If True, clears the log file at startup
        use_json: If True, uses JSON formatter for file output
        mask_secrets: If True, masks sensitive values like API keys in logs
    """
    setup_log_file(clear_log)
    return configure_logger(name, log_level, use_json, mask_secrets)


def set_correlation_id(correlation_id: str):
    """Set the correlation ID for the current context."""
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    """Get the correlation ID for the current context."""
    return correlation_id_var.get()


logger = logging.getLogger(__name__)


def log_async_execution_time(func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorator to log the execution time of a coroutine function.
    """
    if not inspect.iscoroutinefunction(func):
        raise TypeError(f"{func.__name__} is not a coroutine function")

    @wraps(func)
    async def wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        logger.info(f"Starting async execution of: {func.__name__}")
        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.error(f"Error in async {func.__name__} after {duration:.4f} seconds: {e}")
            raise
        duration = time.perf_counter() - start_time
        logger.info(f"Finished async execution of: {func.__name__} in {duration:.4f} seconds")
        return result
    return wrapper
