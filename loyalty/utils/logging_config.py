"""
Logging setup for the loyalty service.

Configured once, before the Flask app is created, so that import-time
loggers (``logging.getLogger(__name__)``) inherit the same handlers.
"""
import json
import logging
import os
import sys

DEFAULT_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            'timestamp': self.formatTime(record, '%Y-%m-%dT%H:%M:%S'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        details = getattr(record, 'details', None)
        if details:
            payload['details'] = details
        if record.exc_info:
            payload['exception'] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(level: str = None, log_format: str = None) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level name, defaults to LOG_LEVEL env var or INFO
        log_format: 'text' or 'json', defaults to LOG_FORMAT env var or text
    """
    level = (level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    log_format = (log_format or os.getenv('LOG_FORMAT', 'text')).lower()

    handler = logging.StreamHandler(sys.stdout)
    if log_format == 'json':
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))

    root = logging.getLogger()
    # Replace handlers so repeated create_app() calls (tests) don't stack output
    root.handlers = [handler]
    root.setLevel(getattr(logging, level, logging.INFO))

    # SQLAlchemy engine logging is very noisy at INFO
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
