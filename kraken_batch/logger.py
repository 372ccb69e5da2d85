# kraken_batch/logger.py
import sys
import logging
from logging.handlers import RotatingFileHandler

LOGGER_NAME = 'kraken_batch'


class _ConsoleFilter(logging.Filter):
    """Drop records that log_print has already written to stdout."""
    def filter(self, record):
        return getattr(record, 'console', True)


def setup_logger(log_file=None, log_level=logging.INFO):
    """
    Set up a single logger (named 'kraken_batch') that logs to console
    and optionally to a file.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)
    # Remove any existing handlers to avoid duplication
    logger.handlers = []

    formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(_ConsoleFilter())
    logger.addHandler(console_handler)

    if log_file:
        file_handler = RotatingFileHandler(log_file, maxBytes=10_485_760, backupCount=5)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def log_print(message, level='info'):
    """
    Print to console and also log with the 'kraken_batch' logger.

    The record is kept off the console handler so the operator sees the
    message once, without a timestamp prefix.
    """
    logger = logging.getLogger(LOGGER_NAME)
    print(message)
    levelno = getattr(logging, level.upper(), logging.INFO)
    logger.log(levelno, message, extra={'console': False})
