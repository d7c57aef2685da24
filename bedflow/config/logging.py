"""
Logging configuration dictionary for bedflow.
Provides plain, JSON and coloured console formatters.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from bedflow.config.settings import Settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON lines with level, logger name and structured exception info"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name

        for attr in ('tenant_id', 'operation', 'request_id'):
            if hasattr(record, attr):
                log_record[attr] = getattr(record, attr)

        if record.exc_info:
            log_record['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': self.formatException(record.exc_info)
            }


def build_logging_config(settings: Settings) -> Dict[str, Any]:
    """
    Build a ``logging.config.dictConfig`` dictionary from settings.

    File handlers are only added when ``LOG_FILE`` is configured.
    """
    level = settings.logging.LOG_LEVEL
    if settings.logging.LOG_FORMAT == 'json':
        console_formatter = 'json'
    elif settings.is_development():
        console_formatter = 'colored'
    else:
        console_formatter = 'standard'

    config: Dict[str, Any] = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
            },
            'json': {
                '()': CustomJsonFormatter,
                'format': '%(timestamp)s %(level)s %(logger)s %(message)s'
            },
            'colored': {
                '()': 'colorlog.ColoredFormatter',
                'format': '%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                'log_colors': {
                    'DEBUG': 'cyan',
                    'INFO': 'green',
                    'WARNING': 'yellow',
                    'ERROR': 'red',
                    'CRITICAL': 'red,bg_white',
                }
            }
        },
        'handlers': {
            'console': {
                'level': level,
                'class': 'logging.StreamHandler',
                'formatter': console_formatter,
            },
        },
        'loggers': {
            '': {
                'handlers': ['console'],
                'level': level,
            },
            'bedflow': {
                'handlers': [],
                'level': level,
                'propagate': True,
            },
            'sqlalchemy.engine': {
                'level': 'INFO' if settings.logging.LOG_SQL_QUERIES else 'WARNING',
                'propagate': True,
            },
            'redis': {
                'level': 'WARNING',
                'propagate': True,
            },
        },
    }

    if settings.logging.LOG_FILE:
        if settings.logging.LOG_ROTATION == 'size':
            file_handler = {
                'class': 'logging.handlers.RotatingFileHandler',
                'maxBytes': 10485760,  # 10MB
                'backupCount': 10,
            }
        else:
            file_handler = {
                'class': 'logging.handlers.TimedRotatingFileHandler',
                'when': 'midnight',
                'backupCount': settings.logging.LOG_RETENTION,
            }
        file_handler.update({
            'level': level,
            'filename': settings.logging.LOG_FILE,
            'formatter': 'json',
            'encoding': 'utf8',
        })
        config['handlers']['file'] = file_handler
        config['loggers']['']['handlers'].append('file')

    return config
