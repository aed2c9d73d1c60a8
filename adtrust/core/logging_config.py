"""Logging configuration for the application.

Three files end up in LOG_DIR:
- adtrust.log: everything at LOG_LEVEL, rotated by size
- adtrust-errors.log: directory failures and other errors, rotated by size
- security.log: trust policy events (override user, untrusted proxies,
  open allow-list), rotated daily and kept SECURITY_LOG_DAYS days
"""
import logging
import sys
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from adtrust.core.config import (
    LOG_LEVEL, LOG_DIR, LOG_MAX_BYTES, LOG_BACKUP_COUNT, SECURITY_LOG_DAYS
)

log_dir = Path(LOG_DIR)
log_dir.mkdir(parents=True, exist_ok=True)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

logger = logging.getLogger("adtrust")
logger.setLevel(LOG_LEVEL)

# Child logger for identity/trust decisions, still propagates to the handlers above
security_logger = logger.getChild("security")


def _size_rotated(filename: str, level) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        log_dir / filename,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


if not logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(LOG_LEVEL)
    console_handler.setFormatter(formatter)

    logger.addHandler(console_handler)
    logger.addHandler(_size_rotated("adtrust.log", LOG_LEVEL))
    logger.addHandler(_size_rotated("adtrust-errors.log", logging.ERROR))

if not security_logger.handlers:
    security_handler = TimedRotatingFileHandler(
        log_dir / "security.log",
        when="midnight",
        backupCount=SECURITY_LOG_DAYS
    )
    security_handler.setLevel(logging.WARNING)
    security_handler.setFormatter(formatter)
    security_logger.addHandler(security_handler)

# ldap3 is chatty at DEBUG, uvicorn duplicates our access logs
logging.getLogger("ldap3").setLevel(logging.WARNING)
logging.getLogger("uvicorn").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
