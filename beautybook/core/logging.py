"""Logging configuration."""

import logging
import sys

from beautybook.config import settings


class EndpointFilter(logging.Filter):
    """Drop health check lines from the access log."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.getMessage().find("/health") == -1


def setup_logging() -> None:
    logging.basicConfig(
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    logging.getLogger("uvicorn.access").addFilter(EndpointFilter())

    # httpx logs every push request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
