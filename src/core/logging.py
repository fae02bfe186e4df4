import logging
import sys
from typing import TextIO


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: int = logging.INFO, stream: TextIO | None = None) -> None:
    """
    Install a single StreamHandler on the root logger. Logs emitted from the
    token refresh task and from middleware share this handler, so existing
    handlers are removed first to avoid duplicated lines.
    """
    logger = logging.getLogger()
    logger.setLevel(level)

    for h in list(logger.handlers):
        logger.removeHandler(h)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger.addHandler(handler)

