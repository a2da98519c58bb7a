import logging
import sys
import structlog
from pythonjsonlogger import jsonlogger

from storefront_webhooks.core.config import settings


def setup_logging():
    """
    Configure structured logging for the application.

    With LOG_JSON enabled, structlog hands its event dict to the stdlib
    record and python-json-logger renders it; otherwise a console renderer
    is used.
    """
    handler = logging.StreamHandler(sys.stdout)
    if settings.LOG_JSON:
        handler.setFormatter(jsonlogger.JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        renderer = structlog.stdlib.render_to_log_kwargs
    else:
        handler.setFormatter(logging.Formatter("%(message)s"))
        renderer = structlog.dev.ConsoleRenderer()

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


class ContextLogger:
    """
    Logger with context support for tracing jobs and requests.
    """

    def __init__(self, name: str):
        self.logger = structlog.get_logger(name)

    def for_job(self, job) -> structlog.BoundLogger:
        """Bind a queue job's identity to every event logged through the result."""
        return self.logger.bind(job_id=job.id, topic=job.topic, retry_count=job.retry_count)

    def info(self, message: str, **kwargs):
        self.logger.info(message, **kwargs)

    def error(self, message: str, **kwargs):
        self.logger.error(message, **kwargs)

    def warning(self, message: str, **kwargs):
        self.logger.warning(message, **kwargs)

    def debug(self, message: str, **kwargs):
        self.logger.debug(message, **kwargs)

    def exception(self, message: str, **kwargs):
        self.logger.exception(message, **kwargs)


def get_logger(name: str) -> ContextLogger:
    """
    Get a context-aware logger instance.
    """
    return ContextLogger(name)
