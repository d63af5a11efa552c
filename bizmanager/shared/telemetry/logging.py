"""Logging configuration for the BizManager authorization service"""
import logging
import sys

from bizmanager.infrastructure.config.settings import get_settings
from bizmanager.shared.context import get_correlation_id

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"


class CorrelationIdFilter(logging.Filter):
    """Attach the request correlation id to every log record"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"
        return True


def setup_logging():
    """Configure application-wide logging"""
    settings = get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        handlers=[handler],
        force=True,
    )

    # SQL echo is controlled by settings.database_echo, keep the engine logger quiet
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get logger for module"""
    return logging.getLogger(name)
