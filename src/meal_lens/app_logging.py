"""Logging configuration helpers."""

import logging
from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIdFilter(logging.Filter):
    """Attach the current request correlation id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


def configure_logging() -> None:
    """Configure application logging with a single stream handler."""
    logger = logging.getLogger("meal_lens")
    logger.setLevel(logging.INFO)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(
        logging.Formatter("%(levelname)s: %(name)s: [%(request_id)s] %(message)s")
    )
    logger.addHandler(handler)
    logger.propagate = False
