# kraken_batch/utils/file_utils.py
import os
import logging


def check_file_exists(filepath, description):
    """Check if a file exists and is readable."""
    logger = logging.getLogger('kraken_batch')

    if not os.path.isfile(filepath):
        logger.error(f"ERROR: {description} file does not exist: {filepath}")
        return False

    if not os.access(filepath, os.R_OK):
        logger.error(f"ERROR: {description} file exists but is not readable: {filepath}")
        return False

    return True


def is_nonempty_file(filepath):
    """True when filepath is a regular file holding at least one byte."""
    return os.path.isfile(filepath) and os.path.getsize(filepath) > 0


def append_to_log(log_file, message):
    """Append a single line to a per-sample log file, creating it if needed."""
    os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
    with open(log_file, "a") as fh:
        fh.write(f"[kraken-batch] {message}\n")


def read_tail(filepath, max_lines=5):
    """Return the last max_lines lines of a text file ('' if it is missing)."""
    if not os.path.isfile(filepath):
        return ""
    with open(filepath, "r", errors="replace") as fh:
        lines = fh.read().strip().split('\n')
    return '\n'.join(lines[-max_lines:])
