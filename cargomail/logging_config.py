"""
Logging configuration for the sync backend
"""
import logging
import os
from logging.handlers import RotatingFileHandler

from .config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = None, log_dir: str = None):
    """Configure root logging with a console handler and a rotating log file"""

    level_name = (level or settings.LOG_LEVEL).upper()
    log_dir = log_dir or settings.LOG_DIR

    handlers = [logging.StreamHandler()]
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                os.path.join(log_dir, "cargomail.log"),
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
            )
        )

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )

    # SQL echo is noisy; only surface it when debugging
    sql_logger = logging.getLogger("sqlalchemy.engine")
    sql_logger.setLevel(logging.INFO if level_name == "DEBUG" else logging.WARNING)

    # Sync traffic gets its own logger so it can be tuned independently
    sync_logger = logging.getLogger("cargomail.services")
    sync_logger.setLevel(getattr(logging, level_name, logging.INFO))

    return logging.getLogger(__name__)
