"""
Project Portal - Logging
Plain text in development, one JSON object per line in production.
Every record carries the request, user and project ids of the current request.
"""

import logging
import sys
import json
import uuid
from datetime import datetime
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional
from contextvars import ContextVar

from portal.core.config import settings


request_id_var: ContextVar[str] = ContextVar('request_id', default='')
user_id_var: ContextVar[str] = ContextVar('user_id', default='')
project_id_var: ContextVar[str] = ContextVar('project_id', default='')

CONTEXT_VARS = {
    'request_id': request_id_var,
    'user_id': user_id_var,
    'project_id': project_id_var,
}

# Keys of our own `extra=` payloads that are copied into JSON output
EXTRA_PREFIXES = ('event_type', 'http_', 'auth_', 'workflow_', 'error_', 'duration_ms', 'user_email', 'failure_reason')


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def set_user_id(user_id: str) -> None:
    user_id_var.set(user_id)


def set_project_id(project_id: str) -> None:
    project_id_var.set(project_id)


def current_context() -> Dict[str, str]:
    """Non-empty context ids for the running request"""
    return {key: var.get() for key, var in CONTEXT_VARS.items() if var.get()}


def generate_request_id() -> str:
    return str(uuid.uuid4())[:8]


class JSONFormatter(logging.Formatter):
    """Structured records for log aggregation"""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.lineno}",
            **current_context(),
        }
        log_data.update({
            key: value for key, value in record.__dict__.items()
            if key.startswith(EXTRA_PREFIXES)
        })
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


class ContextualFormatter(logging.Formatter):
    """Readable lines with the request and user ids filled in"""

    def format(self, record: logging.LogRecord) -> str:
        for key, var in CONTEXT_VARS.items():
            setattr(record, key, var.get() or '-')
        return super().format(record)


class PortalLogger(logging.Logger):
    """Logger with one helper per kind of event the portal records"""

    def log_request(self, method: str, path: str, status_code: int, duration_ms: float) -> None:
        level = logging.WARNING if status_code >= 500 else logging.INFO
        self.log(
            level,
            f"HTTP {method} {path} - {status_code} ({duration_ms:.2f}ms)",
            extra={
                "event_type": "http_request",
                "http_method": method,
                "http_path": path,
                "http_status": status_code,
                "duration_ms": duration_ms,
            }
        )

    def log_auth_event(self, event: str, success: bool, user_email: Optional[str] = None,
                       reason: Optional[str] = None, **kwargs) -> None:
        level = logging.INFO if success else logging.WARNING
        outcome = "success" if success else f"failed ({reason})"
        self.log(
            level,
            f"Auth {event} {outcome}: {user_email or '-'}",
            extra={
                "event_type": "auth",
                "auth_event": event,
                "auth_success": success,
                "user_email": user_email,
                "failure_reason": reason,
                **{f"auth_{key}": value for key, value in kwargs.items()},
            }
        )

    def log_workflow_event(self, event: str, project_id: str, **kwargs) -> None:
        """Log a project lifecycle transition"""
        self.info(
            f"Project {project_id}: {event}",
            extra={
                "event_type": "workflow",
                "workflow_event": event,
                "workflow_project_id": project_id,
                **{f"workflow_{key}": value for key, value in kwargs.items()},
            }
        )

    def log_error_with_context(self, error: Exception, context: Optional[str] = None) -> None:
        self.error(
            f"Error in {context}: {type(error).__name__}: {error}",
            exc_info=True,
            extra={
                "event_type": "error",
                "error_type": type(error).__name__,
                "error_context": context,
            }
        )


def _handler(handler: logging.Handler, formatter: logging.Formatter, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging() -> PortalLogger:
    """Configure the "portal" logger for the current environment"""
    logging.setLoggerClass(PortalLogger)

    logger = logging.getLogger("portal")
    logger.__class__ = PortalLogger
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    logger.handlers.clear()
    logger.propagate = False

    json_logging = settings.ENVIRONMENT == "production"
    if json_logging:
        console_formatter = file_formatter = JSONFormatter()
    else:
        console_formatter = ContextualFormatter("%(levelname)-8s | [%(request_id)s] %(message)s")
        file_formatter = ContextualFormatter(
            "%(asctime)s | %(levelname)-8s | [%(request_id)s] [%(user_id)s] [%(project_id)s] | "
            "%(funcName)s:%(lineno)d | %(message)s"
        )

    logger.addHandler(_handler(logging.StreamHandler(sys.stdout), console_formatter, logging.INFO))

    if settings.LOG_FILE:
        log_file = Path(settings.LOG_FILE)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(log_file, maxBytes=10485760, backupCount=5)  # 10MB
        logger.addHandler(_handler(rotating, file_formatter, logging.DEBUG))

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "aiosmtplib"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger.info(f"Logging initialized ({settings.ENVIRONMENT}, json={json_logging})")
    return logger


logger: PortalLogger = setup_logging()


__all__ = [
    'logger',
    'setup_logging',
    'current_context',
    'set_request_id',
    'set_user_id',
    'set_project_id',
    'generate_request_id',
    'PortalLogger',
    'JSONFormatter',
]
