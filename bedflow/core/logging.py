"""
Logging for the bed-management engines.

structlog handles event rendering; stdlib logging carries the records. Tenant
and request ids travel through context variables so every engine log line
can be traced back to the hospital that triggered it.
"""

import logging
import logging.config
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, MutableMapping, Optional, Tuple

import structlog

from bedflow.config.logging import build_logging_config
from bedflow.config.settings import Settings, get_settings

request_id: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
tenant_id: ContextVar[Optional[str]] = ContextVar('tenant_id', default=None)

# Substrings of event keys whose values never reach a log sink
SENSITIVE_KEYS = ('password', 'token', 'secret', 'credentials', 'authorization', 'mrn')


class RequestContextProcessor:
    """structlog processor stamping service, environment, tenant and request"""

    def __init__(self, settings: Settings):
        self.service = settings.APP_NAME
        self.environment = settings.ENVIRONMENT

    def __call__(self, logger, method_name, event_dict):
        for key, var in (('tenant_id', tenant_id), ('request_id', request_id)):
            value = var.get()
            if value:
                event_dict.setdefault(key, value)
        event_dict['service'] = self.service
        event_dict['environment'] = self.environment
        return event_dict


def redact(values: Dict[str, Any]) -> None:
    """Mask record numbers and secrets in place, including inside nested dicts."""
    for key, value in values.items():
        if any(marker in key.lower() for marker in SENSITIVE_KEYS):
            values[key] = '[REDACTED]'
        elif isinstance(value, dict):
            redact(value)


class SensitiveDataProcessor:
    """structlog processor applying ``redact`` to each event"""

    def __call__(self, logger, method_name, event_dict):
        redact(event_dict)
        return event_dict


class ContextFilter(logging.Filter):
    """
    Copy tenant and request ids onto stdlib records that lack them and
    mask sensitive ``extra`` fields, so engine log lines get the same
    redaction as structlog events.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, var in (('tenant_id', tenant_id), ('request_id', request_id)):
            value = var.get()
            if value and not hasattr(record, key):
                setattr(record, key, value)
        redact(record.__dict__)
        return True


class LoggingConfig:
    """Installs the structlog pipeline and the stdlib dictConfig"""

    @staticmethod
    def configure_structured_logging(settings: Settings):
        renderer = (
            structlog.processors.JSONRenderer()
            if settings.logging.LOG_FORMAT == "json"
            else structlog.processors.KeyValueRenderer()
        )
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                RequestContextProcessor(settings),
                SensitiveDataProcessor(),
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.stdlib.PositionalArgumentsFormatter(),
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.UnicodeDecoder(),
                renderer,
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            context_class=dict,
            cache_logger_on_first_use=True,
        )

    @staticmethod
    def configure_standard_logging(settings: Settings):
        logging.config.dictConfig(build_logging_config(settings))

        context_filter = ContextFilter()
        for handler in logging.getLogger().handlers:
            handler.addFilter(context_filter)


class LoggerAdapter(logging.LoggerAdapter):
    """
    Adapter whose bound context is merged into each call's ``extra``.

    Keys passed in ``extra`` at the call site lose to bound context of the
    same name.
    """

    def __init__(self, logger: logging.Logger):
        super().__init__(logger, {})

    def add_context(self, **kwargs) -> "LoggerAdapter":
        self.extra.update(kwargs)
        return self

    def remove_context(self, *keys) -> "LoggerAdapter":
        for key in keys:
            self.extra.pop(key, None)
        return self

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs['extra'] = {**(kwargs.get('extra') or {}), **self.extra}
        return msg, kwargs


def get_logger(name: Optional[str] = None) -> LoggerAdapter:
    """
    Logger for ``name``, nested under the ``bedflow`` logger.

    Engines pass their class name, e.g. ``bedflow.TransferService``.
    """
    name = name or 'bedflow'
    if not name.startswith('bedflow'):
        name = f'bedflow.{name}'
    return LoggerAdapter(logging.getLogger(name))


@contextmanager
def tenant_context(tenant: str, request: Optional[str] = None) -> Iterator[None]:
    """Bind tenant (and optionally request) ids to every log line in the block."""
    tenant_token = tenant_id.set(tenant)
    request_token = request_id.set(request) if request else None
    structlog.contextvars.bind_contextvars(tenant_id=tenant)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars('tenant_id')
        tenant_id.reset(tenant_token)
        if request_token is not None:
            request_id.reset(request_token)


def setup_logging(settings: Optional[Settings] = None):
    """Configure structlog (when enabled) and stdlib logging from settings."""
    settings = settings or get_settings()
    if settings.logging.ENABLE_STRUCTURED_LOGGING:
        LoggingConfig.configure_structured_logging(settings)
    LoggingConfig.configure_standard_logging(settings)

    get_logger(__name__).info(
        "Logging configured",
        extra={
            'log_level': settings.logging.LOG_LEVEL,
            'log_format': settings.logging.LOG_FORMAT,
            'structured_logging': settings.logging.ENABLE_STRUCTURED_LOGGING,
        },
    )


__all__ = [
    'get_logger',
    'setup_logging',
    'tenant_context',
    'LoggerAdapter',
    'LoggingConfig',
    'ContextFilter',
    'request_id',
    'tenant_id',
]
