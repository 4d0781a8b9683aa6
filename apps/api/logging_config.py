"""
Logging setup for the billing API.

Everything logs through the standard library; modules grab their own logger
with `logging.getLogger(__name__)` and this module only decides levels and
the output format.
"""
import logging

from .settings import settings

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"

# Third-party loggers that are too chatty at INFO.
QUIET_LOGGERS = {
    "psycopg.pool": "WARNING",
    "uvicorn.access": "WARNING",
}


def configure_logging(level_name: str | None = None) -> None:
    level_name = (level_name or settings.LOG_LEVEL).upper()
    level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(level=level, format=LOG_FORMAT)

    for logger_name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(logger_name).setLevel(getattr(logging, quiet_level))
