# greetlink/config/logging.py
import logging

from greetlink.config.settings import settings

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def get_logger(name: str, tag: str = "") -> logging.Logger:
    """Module logger with its own stream handler, detached from the root logger."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        fmt = LOG_FORMAT if not tag else f'%(asctime)s [%(levelname)s] [{tag}] %(message)s'
        handler.setFormatter(logging.Formatter(fmt, LOG_DATE_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(settings.LOG_LEVEL.upper())
        logger.propagate = False  # no duplicate lines through the root logger
    return logger
