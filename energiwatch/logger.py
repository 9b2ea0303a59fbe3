"""
Logging helpers shared by the EnergiWatch modules.
"""
import logging
from datetime import datetime, timezone

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'

_error_logger = logging.getLogger("energiwatch.errors")


def configure_logging(level=logging.INFO):
    logging.basicConfig(level=level, format=LOG_FORMAT)


def get_logger(name):
    logger = logging.getLogger(name)
    logger.addHandler(logging.NullHandler())
    return logger


def log_error(message):
    """
    Record a degraded-path event (AI fallback, bad payload) with a timestamp.
    These are warnings, not failures: the caller has already recovered.
    """
    now = datetime.now(timezone.utc).isoformat(timespec='milliseconds')
    _error_logger.warning("[LOGGER] [%s] %s", now, message)
