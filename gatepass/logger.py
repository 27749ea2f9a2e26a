# =======================================================================================
# gatepass/logger.py - Logging Setup
# =======================================================================================
import logging
import sys

from .config import config

_FORMAT = "[%(asctime)s]  [%(levelname)-8s]  %(name)s  » %(message)s"


def setup_logging() -> logging.Logger:
    """
    Configure the root logger once for the whole service.

    Level comes from LOG_LEVEL; API_DEBUG forces DEBUG.
    """
    root = logging.getLogger()

    # Remove handlers added by imported libraries before us
    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if config.API_DEBUG else config.LOG_LEVEL)

    # Suppress chatty third-party loggers
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    return root
