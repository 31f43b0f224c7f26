import logging
import os
from contextvars import ContextVar
from logging.handlers import TimedRotatingFileHandler
import sys

from . import config

FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] [%(request_id)s] %(message)s"

# set per HTTP request by the app's middleware; "-" outside a request
request_id: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIDFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id.get()
        return True


def setup_logging(stream=None):
    """Configure application-wide logging with console + rotating file.

    The terminal runner passes ``sys.stderr`` so log lines never interleave
    with what the card holder sees on stdout.
    """
    root = logging.getLogger()
    if root.handlers:
        # Avoid double configuration if reloaded
        return

    root.setLevel(config.log_level())

    fmt = logging.Formatter(FORMAT)

    console = logging.StreamHandler(stream or sys.stdout)
    console.setFormatter(fmt)
    console.addFilter(RequestIDFilter())
    root.addHandler(console)

    if config.log_to_file():
        path = config.log_dir()
        os.makedirs(path, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            os.path.join(path, "atm.log"), when="midnight", backupCount=7, encoding="utf-8"
        )
        file_handler.setFormatter(fmt)
        file_handler.addFilter(RequestIDFilter())
        root.addHandler(file_handler)
