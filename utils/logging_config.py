"""
Structured logging configuration and utilities
"""

import logging
import logging.handlers
import json
import traceback
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional
from contextlib import contextmanager
import streamlit as st

from config.app_config import get_config


# Record attributes that belong to logging itself, not to `extra=`
_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName', 'taskName',
    'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info'
}

# Never written to any sink
_SENSITIVE_KEYS = {"token", "password", "confirm_password", "authorization"}


def redact(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Mask credential-like values in a flat mapping of log fields"""
    return {
        key: ("***" if key.lower() in _SENSITIVE_KEYS else value)
        for key, value in fields.items()
    }


class StructuredFormatter(logging.Formatter):
    """
    Custom formatter that outputs structured JSON logs
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON"""

        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info)
            }

        extra_fields = {
            key: value for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS
        }

        if extra_fields:
            log_data["extra"] = redact(extra_fields)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class StreamlitLogHandler(logging.Handler):
    """
    Custom log handler that displays warnings and errors in the Streamlit page
    """

    def emit(self, record: logging.LogRecord):
        try:
            if record.levelno >= logging.ERROR:
                st.error(f"🚨 {record.getMessage()}")
            elif record.levelno >= logging.WARNING:
                st.warning(f"⚠️ {record.getMessage()}")
            else:
                st.text(f"🐛 {record.getMessage()}")
        except Exception:
            self.handleError(record)


def setup_logging() -> logging.Logger:
    """
    Set up structured logging for the application

    Returns:
        logging.Logger: Configured root logger
    """
    config = get_config()

    if config.logging.enable_file_logging:
        log_file_path = Path(config.logging.log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.logging.level))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, config.logging.level))

    if config.debug:
        # Human-readable format for development
        console_formatter = logging.Formatter(
            config.logging.format + ' [%(filename)s:%(lineno)d]'
        )
    else:
        console_formatter = StructuredFormatter()

    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if config.logging.enable_file_logging:
        file_handler = logging.handlers.RotatingFileHandler(
            config.logging.log_file,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    if config.debug and config.environment == "development":
        streamlit_handler = StreamlitLogHandler()
        streamlit_handler.setLevel(logging.WARNING)
        streamlit_handler.setFormatter(logging.Formatter('%(message)s'))
        root_logger.addHandler(streamlit_handler)

    # httpx logs every request at INFO, including full URLs
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name

    Args:
        name: Logger name (typically __name__)

    Returns:
        logging.Logger: Configured logger
    """
    return logging.getLogger(name)


@contextmanager
def log_execution_time(logger: logging.Logger, operation: str, **extra_fields):
    """
    Context manager to log execution time of operations

    Args:
        logger: Logger instance
        operation: Description of the operation
        **extra_fields: Additional fields to include in log
    """
    start_time = datetime.now()

    try:
        logger.debug(f"Starting {operation}", extra={
            "operation": operation,
            "start_time": start_time.isoformat(),
            **extra_fields
        })

        yield

        duration = (datetime.now() - start_time).total_seconds()
        logger.info(f"Completed {operation}", extra={
            "operation": operation,
            "duration_seconds": duration,
            "status": "success",
            **extra_fields
        })

    except Exception as e:
        duration = (datetime.now() - start_time).total_seconds()
        logger.warning(f"Failed {operation}: {str(e)}", extra={
            "operation": operation,
            "duration_seconds": duration,
            "status": "error",
            "error_type": type(e).__name__,
            "error_message": str(e),
            **extra_fields
        })

        raise


def log_user_interaction(logger: logging.Logger, interaction_type: str, **details):
    """
    Log user interactions (logins, bookings, cancellations...)

    Args:
        logger: Logger instance
        interaction_type: Type of interaction (e.g., "login", "spot_booked")
        **details: Additional interaction details
    """
    logger.info("User interaction", extra={
        "event_type": "user_interaction",
        "interaction_type": interaction_type,
        "timestamp": datetime.now().isoformat(),
        **redact(details)
    })


def log_api_request(logger: logging.Logger, method: str, path: str, status_code: Optional[int],
                    duration_seconds: float, **details):
    """
    Log one round trip to the parking API

    Args:
        logger: Logger instance
        method: HTTP method
        path: Request path (no base URL, no query)
        status_code: Response status, None when no response arrived
        duration_seconds: Wall time of the request
    """
    level = logging.DEBUG if status_code is not None and status_code < 400 else logging.WARNING
    logger.log(level, f"{method} {path} -> {status_code if status_code is not None else 'no response'}", extra={
        "event_type": "api_request",
        "method": method,
        "path": path,
        "status_code": status_code,
        "duration_seconds": round(duration_seconds, 4),
        **redact(details)
    })


class ErrorTracker:
    """
    Centralized error tracking and reporting
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.error_counts: Dict[str, int] = {}

    def track_error(self, error: Exception, context: str = "", **extra_info):
        """
        Track and log an error with context

        Args:
            error: Exception that occurred
            context: Context where error occurred
            **extra_info: Additional error information
        """
        error_type = type(error).__name__
        error_key = f"{error_type}:{context}"

        self.error_counts[error_key] = self.error_counts.get(error_key, 0) + 1

        self.logger.error(f"Error in {context}: {str(error)}", extra={
            "event_type": "error",
            "error_type": error_type,
            "error_message": str(error),
            "context": context,
            "error_count": self.error_counts[error_key],
            "timestamp": datetime.now().isoformat(),
            **redact(extra_info)
        }, exc_info=error)

    def get_error_summary(self) -> Dict[str, Any]:
        """
        Get summary of tracked errors

        Returns:
            Dict with error statistics
        """
        return {
            "total_errors": sum(self.error_counts.values()),
            "unique_errors": len(self.error_counts),
            "error_breakdown": dict(self.error_counts),
            "timestamp": datetime.now().isoformat()
        }


# Global instances
_logger_setup = False
_error_tracker: Optional[ErrorTracker] = None


def initialize_logging() -> ErrorTracker:
    """
    Initialize logging system and return error tracker

    Returns:
        ErrorTracker: Global error tracker instance
    """
    global _logger_setup, _error_tracker

    if not _logger_setup:
        setup_logging()
        _logger_setup = True

    if _error_tracker is None:
        _error_tracker = ErrorTracker(logging.getLogger("parking_app.errors"))

    return _error_tracker


def get_error_tracker() -> ErrorTracker:
    """
    Get the global error tracker instance

    Returns:
        ErrorTracker: Global error tracker
    """
    if _error_tracker is None:
        return initialize_logging()
    return _error_tracker
