"""Root logger setup: JSON records in deployed environments, plain text locally"""

import logging
import sys
from pythonjsonlogger import jsonlogger

from app.config import settings

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that log every request or statement at INFO
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx")


class BillingJsonFormatter(jsonlogger.JsonFormatter):
    """Adds level, logger, environment and app name to each record; correlation_id when a request set one"""

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record.update(
            level=record.levelname,
            logger=record.name,
            environment=settings.ENVIRONMENT,
            app_name=settings.APP_NAME,
        )
        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id is not None:
            log_record["correlation_id"] = correlation_id


def build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return BillingJsonFormatter(fmt="%(asctime)s %(level)s %(name)s %(message)s", datefmt=DATE_FORMAT)
    return logging.Formatter(fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s", datefmt=DATE_FORMAT)


def setup_logging() -> None:
    """Install a single stdout handler on the root logger; calling it again replaces that handler."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter(settings.LOG_FORMAT))

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
