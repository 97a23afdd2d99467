"""
Logging Configuration and Utilities

Every record emitted under the ``procurement`` logger carries the request
id and the acting user, so a letter's transitions can be followed across
requests. Output is plain text or JSON (python-json-logger); structlog is
configured with the same context when structured logging is enabled.
"""

import inspect
import logging
import logging.handlers
import sys
import time
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import structlog
from pythonjsonlogger import jsonlogger

from procurement.config.settings import settings

# Context variables for request tracking
request_id: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
user_id: ContextVar[Optional[str]] = ContextVar('user_id', default=None)

ROOT_LOGGER_NAME = "procurement"

# Calls slower than this are logged at WARNING by log_execution_time
SLOW_CALL_SECONDS = 1.0

TEXT_FORMAT = '%(asctime)s %(levelname)-8s [%(request_id)s] %(name)s: %(message)s'
JSON_FORMAT = '%(asctime)s %(name)s %(levelname)s %(message)s'


def _current_context() -> Dict[str, Optional[str]]:
    return {"request_id": request_id.get(), "actor_id": user_id.get()}


class RequestContextProcessor:
    """structlog processor: request id, actor and service identity"""

    def __call__(self, logger, method_name, event_dict):
        for key, value in _current_context().items():
            if value:
                event_dict.setdefault(key, value)

        event_dict['timestamp'] = datetime.now(timezone.utc).isoformat()
        event_dict['service'] = settings.APP_NAME
        event_dict['environment'] = settings.ENVIRONMENT
        return event_dict


class WorkflowEventProcessor:
    """Tag events that record a letter changing state"""

    def __call__(self, logger, method_name, event_dict):
        if 'letter_id' in event_dict and 'to_status' in event_dict:
            event_dict['workflow_event'] = True
        return event_dict


class SanitizingProcessor:
    """Mask sensitive values before they reach a renderer"""

    SENSITIVE_KEYS = ('password', 'token', 'secret', 'authorization', 'cookie')

    def __call__(self, logger, method_name, event_dict):
        return self.sanitize(event_dict)

    @classmethod
    def sanitize(cls, values: Dict[str, Any]) -> Dict[str, Any]:
        for key, value in values.items():
            if any(marker in key.lower() for marker in cls.SENSITIVE_KEYS):
                values[key] = '[REDACTED]'
            elif isinstance(value, dict):
                cls.sanitize(value)
        return values


class RequestContextFilter(logging.Filter):
    """Stamp request id and actor on stdlib records for the formatters"""

    def filter(self, record: logging.LogRecord) -> bool:
        # Values passed explicitly through ``extra`` win over the context
        for key, value in _current_context().items():
            if not getattr(record, key, None):
                setattr(record, key, value or "-")
        return True


class ProcurementJsonFormatter(jsonlogger.JsonFormatter):
    """One JSON object per record, sensitive keys masked"""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['location'] = f"{record.module}:{record.funcName}:{record.lineno}"

        if record.exc_info and 'exception' not in log_record:
            log_record['exception'] = self.formatException(record.exc_info)

        SanitizingProcessor.sanitize(log_record)


class LoggingConfig:
    """Configures the ``procurement`` logger tree and, optionally, structlog"""

    @staticmethod
    def configure_structured_logging():
        renderer = (
            structlog.processors.JSONRenderer()
            if settings.LOG_FORMAT == "json"
            else structlog.processors.KeyValueRenderer(key_order=['event', 'request_id'])
        )

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                RequestContextProcessor(),
                WorkflowEventProcessor(),
                SanitizingProcessor(),
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.format_exc_info,
                renderer,
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            context_class=dict,
            cache_logger_on_first_use=True,
        )

    @staticmethod
    def configure_standard_logging():
        level = getattr(logging, settings.LOG_LEVEL)

        # The root logger stays untouched; only our tree is configured
        package_logger = logging.getLogger(ROOT_LOGGER_NAME)
        package_logger.setLevel(level)
        package_logger.propagate = False
        package_logger.handlers.clear()

        if settings.LOG_FORMAT == "json":
            formatter: logging.Formatter = ProcurementJsonFormatter(JSON_FORMAT)
        else:
            formatter = logging.Formatter(TEXT_FORMAT)

        handlers = [logging.StreamHandler(sys.stdout)]
        if settings.LOG_FILE:
            log_path = Path(settings.LOG_FILE)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(
                logging.handlers.RotatingFileHandler(
                    log_path,
                    maxBytes=10 * 1024 * 1024,
                    backupCount=5,
                    encoding='utf-8',
                )
            )

        context_filter = RequestContextFilter()
        for handler in handlers:
            handler.setLevel(level)
            handler.setFormatter(formatter)
            handler.addFilter(context_filter)
            package_logger.addHandler(handler)

        LoggingConfig._configure_library_loggers()

    @staticmethod
    def _configure_library_loggers():
        sql_level = logging.INFO if settings.LOG_SQL_QUERIES else logging.WARNING
        logging.getLogger("sqlalchemy.engine").setLevel(sql_level)
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)


class LoggerAdapter:
    """
    Thin wrapper over a stdlib logger that merges bound fields into
    ``extra``.

    ``bind`` returns a new adapter; the original keeps its own fields.
    """

    def __init__(self, logger: logging.Logger, bound: Optional[Mapping[str, Any]] = None):
        self.logger = logger
        self._bound: Dict[str, Any] = dict(bound or {})

    def bind(self, **fields) -> "LoggerAdapter":
        return LoggerAdapter(self.logger, {**self._bound, **fields})

    def _log(self, level: int, message: str, *args, **kwargs):
        if not self.logger.isEnabledFor(level):
            return
        kwargs['extra'] = {**self._bound, **(kwargs.get('extra') or {})}
        kwargs.setdefault('stacklevel', 3)
        self.logger.log(level, message, *args, **kwargs)

    def debug(self, message: str, *args, **kwargs):
        self._log(logging.DEBUG, message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs):
        self._log(logging.INFO, message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs):
        self._log(logging.WARNING, message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs):
        self._log(logging.ERROR, message, *args, **kwargs)

    def critical(self, message: str, *args, **kwargs):
        self._log(logging.CRITICAL, message, *args, **kwargs)


def get_logger(name: str = ROOT_LOGGER_NAME) -> LoggerAdapter:
    """
    Logger under the ``procurement`` tree.

    Module names are used as given; bare names such as a class name are
    nested under ``procurement``.
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return LoggerAdapter(logging.getLogger(name))


def log_execution_time(logger_name: Optional[str] = None):
    """
    Decorator logging how long the wrapped call took.

    Failures are logged at ERROR and re-raised; calls slower than
    ``SLOW_CALL_SECONDS`` are logged at WARNING, the rest at DEBUG.
    """
    def decorator(func):
        logger = get_logger(logger_name or func.__module__)

        def report(started: float, error: Optional[BaseException] = None):
            elapsed = time.perf_counter() - started
            fields = {'function': func.__qualname__, 'execution_time': round(elapsed, 4)}
            if error is not None:
                logger.error("Call failed", extra={**fields, 'error_type': type(error).__name__})
            elif elapsed > SLOW_CALL_SECONDS:
                logger.warning("Slow call", extra=fields)
            else:
                logger.debug("Call finished", extra=fields)

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                started = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    report(started, e)
                    raise
                report(started)
                return result

            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                report(started, e)
                raise
            report(started)
            return result

        return sync_wrapper

    return decorator


def setup_logging():
    """Initialize logging configuration"""
    if settings.ENABLE_STRUCTURED_LOGGING:
        LoggingConfig.configure_structured_logging()

    LoggingConfig.configure_standard_logging()

    get_logger(__name__).debug("Logging system initialized", extra={
        'log_level': settings.LOG_LEVEL,
        'log_format': settings.LOG_FORMAT,
        'structured_logging': settings.ENABLE_STRUCTURED_LOGGING,
    })


# Initialize logging when module is imported
setup_logging()

__all__ = [
    'get_logger',
    'setup_logging',
    'log_execution_time',
    'LoggerAdapter',
    'LoggingConfig',
    'request_id',
    'user_id',
]
