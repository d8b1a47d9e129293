import contextvars
import logging
import json
import os
import sys
from pathlib import Path
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler

# Fields that callers may attach via logger.info("msg", extra={...})
EXTRA_FIELDS = (
    "correlation_id", "user_id", "method", "path", "status", "duration_ms",
    "client_ip", "error", "error_type", "resume_id", "version_id",
    "version_number", "operation", "cache",
)

# Set per request by CorrelationMiddleware
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("correlation_id", default="")


class StructuredFormatter(logging.Formatter):
    """JSON log formatter, one object per line"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        for key in EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value not in (None, ""):
                entry[key] = value
        if "correlation_id" not in entry and correlation_id_var.get():
            entry["correlation_id"] = correlation_id_var.get()

        if record.levelno >= logging.WARNING:
            entry["source"] = f"{record.filename}:{record.lineno}"

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
            }

        return json.dumps(entry, default=str)


class SimpleFormatter(logging.Formatter):
    """Human-readable formatter for local development"""

    def __init__(self):
        super().__init__(
            '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
            datefmt='%H:%M:%S'
        )


def setup_logger(name: str = "resume_builder", level: str = None) -> logging.Logger:
    """
    Configure a logger for the service.

    LOG_FORMAT=json switches stdout to structured JSON for log shipping;
    otherwise a readable format is used and a rotating file is kept
    under logs/ when LOG_TO_FILE is set.
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    level = level or os.getenv("LOG_LEVEL", "INFO")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    is_json = os.getenv("LOG_FORMAT") == "json"

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(StructuredFormatter() if is_json else SimpleFormatter())
    logger.addHandler(console_handler)

    if not is_json and os.getenv("LOG_TO_FILE"):
        try:
            log_dir = Path("logs")
            log_dir.mkdir(exist_ok=True)
            file_handler = RotatingFileHandler(
                log_dir / "resume_builder.log",
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding='utf-8'
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(StructuredFormatter())
            logger.addHandler(file_handler)
        except OSError as e:
            # Read-only filesystems in some deployments
            logger.warning(f"Could not setup file logging: {e}")

    return logger


logger = setup_logger()


def get_logger(name: str = None) -> logging.Logger:
    """Get a child of the service logger"""
    if name:
        return logger.getChild(name)
    return logger
