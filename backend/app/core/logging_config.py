"""
College Management API - Centralized Logging Configuration

One ``college`` logger tree. Services log through children of it
(``college.attendance``, ``college.marks`` ...) so a single handler setup
covers the whole application.

- production: JSON lines on stdout (and LOG_FILE when set)
- everything else: readable text with request and account ids
"""

import logging
import sys
import json
import traceback
import uuid
from datetime import datetime
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional
from contextvars import ContextVar

from app.core.config import settings


# Context variables for request tracing
request_id_var: ContextVar[str] = ContextVar('request_id', default='')
account_id_var: ContextVar[str] = ContextVar('account_id', default='')


def get_request_id() -> str:
    return request_id_var.get() or ''


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def get_account_id() -> str:
    return account_id_var.get() or ''


def set_account_id(account_id: str) -> None:
    """Set by the auth dependency once the bearer token is verified"""
    account_id_var.set(account_id)


def generate_request_id() -> str:
    return uuid.uuid4().hex[:8]


# LogRecord attributes that never go into the JSON "extra" section
_RESERVED_RECORD_KEYS = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
    'message', 'taskName', 'request_id', 'account_id',
}

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log aggregation in production"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        if get_request_id():
            entry["request_id"] = get_request_id()
        if get_account_id():
            entry["account_id"] = get_account_id()

        if record.exc_info and record.exc_info[0]:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        entry.update({
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_KEYS and not key.startswith('_')
        })

        return json.dumps(entry, default=str)


class ContextualFormatter(logging.Formatter):
    """Plain-text formatter that can reference %(request_id)s and %(account_id)s"""

    def format(self, record: logging.LogRecord) -> str:
        record.request_id = get_request_id() or '-'
        record.account_id = get_account_id() or '-'
        return super().format(record)


class CollegeLogger(logging.Logger):
    """Logger with helpers for the events this service cares about"""

    def log_db_write(self, operation: str, table: str, rows_affected: int = 0,
                     **kwargs) -> None:
        """A committed write: enrollment decisions, attendance sessions, marks"""
        self.info(
            f"DB {operation} on {table} - {rows_affected} rows",
            extra={
                "event_type": "db_write",
                "db_operation": operation,
                "db_table": table,
                "rows_affected": rows_affected,
                **kwargs
            }
        )

    def log_auth_event(self, event: str, success: bool, user_email: Optional[str] = None,
                       reason: Optional[str] = None, **kwargs) -> None:
        """Login and registration outcomes; failures at WARNING"""
        outcome = 'success' if success else 'failed'
        details = " - ".join(part for part in (user_email, reason) if part)
        self.log(
            logging.INFO if success else logging.WARNING,
            f"Auth {event}: {outcome}" + (f" - {details}" if details else ""),
            extra={
                "event_type": "auth",
                "auth_event": event,
                "auth_success": success,
                "user_email": user_email,
                "failure_reason": reason,
                **kwargs
            }
        )

    def log_error_with_context(self, error: Exception, context: Optional[str] = None,
                               **kwargs) -> None:
        """Unexpected failure, logged with its traceback"""
        self.error(
            f"Error in {context}: {type(error).__name__}: {error}",
            exc_info=error,
            extra={
                "event_type": "error",
                "error_type": type(error).__name__,
                "error_context": context,
                **kwargs
            }
        )


def _file_handler(formatter: logging.Formatter, backup_count: int) -> RotatingFileHandler:
    log_file = Path(settings.LOG_FILE)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=backup_count)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def setup_logging() -> CollegeLogger:
    """Configure the ``college`` logger for the current environment"""
    # Children created later through get_logger() inherit the class
    logging.setLoggerClass(CollegeLogger)

    logger = logging.getLogger("college")
    logger.__class__ = CollegeLogger
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    logger.handlers.clear()

    json_logging = settings.ENVIRONMENT == "production"

    if json_logging:
        console_formatter = file_formatter = JSONFormatter()
        backup_count = 10
    else:
        console_formatter = ContextualFormatter("%(levelname)-8s | [%(request_id)s] %(message)s")
        file_formatter = ContextualFormatter(
            "%(asctime)s | %(levelname)-8s | "
            "[%(request_id)s] [%(account_id)s] | "
            "%(name)s.%(funcName)s:%(lineno)d | %(message)s"
        )
        backup_count = 5

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if settings.LOG_FILE:
        logger.addHandler(_file_handler(file_formatter, backup_count))

    # Suppress noisy loggers
    for noisy in ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger.info(
        "Logging initialized",
        extra={
            "environment": settings.ENVIRONMENT,
            "log_level": settings.LOG_LEVEL,
            "json_logging": json_logging,
        }
    )

    return logger


logger: CollegeLogger = setup_logging()


def get_logger(name: str) -> CollegeLogger:
    """Child logger under the application logger, e.g. ``college.attendance``"""
    return logger.getChild(name)


__all__ = [
    'logger',
    'get_logger',
    'setup_logging',
    'get_request_id',
    'set_request_id',
    'get_account_id',
    'set_account_id',
    'generate_request_id',
    'CollegeLogger',
]
