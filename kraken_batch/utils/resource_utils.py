# kraken_batch/utils/resource_utils.py

import logging
import os
import psutil
import resource
import threading
import time
from functools import wraps


def get_memory_usage():
    """
    Get current memory usage in MB for the current process.
    """
    process = psutil.Process(os.getpid())
    return process.memory_info().rss / (1024 * 1024)


def track_peak_memory(func):
    """
    Decorator to track peak memory usage during function execution.

    Usage:
        @track_peak_memory
        def my_function(logger, ...):
            # function code
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        logger = None
        for arg in args:
            if isinstance(arg, logging.Logger):
                logger = arg
                break
        if not logger and isinstance(kwargs.get('logger'), logging.Logger):
            logger = kwargs['logger']
        if not logger:
            logger = logging.getLogger('kraken_batch')

        start_mem = get_memory_usage()
        peak_mem = start_mem
        stop_event = threading.Event()

        def check_loop():
            nonlocal peak_mem
            while not stop_event.is_set():
                current = get_memory_usage()
                if current > peak_mem:
                    peak_mem = current
                stop_event.wait(1)

        monitor_thread = threading.Thread(target=check_loop, daemon=True)
        monitor_thread.start()

        try:
            return func(*args, **kwargs)
        finally:
            stop_event.set()
            monitor_thread.join(timeout=1)

            end_mem = get_memory_usage()
            logger.info(
                f"Memory usage: start={start_mem:.2f} MB, "
                f"peak={peak_mem:.2f} MB, end={end_mem:.2f} MB"
            )
    return wrapper


def limit_memory_usage(max_memory_mb=None):
    """
    Attempt to limit memory usage of the current process (Unix/Linux only).

    Child processes inherit the limit, so set it high enough for Kraken2 to
    load its database.

    Returns:
        True if the limit was successfully set, False otherwise.
    """
    if max_memory_mb is None:
        return False

    try:
        max_memory_bytes = max_memory_mb * 1024 * 1024
        resource.setrlimit(resource.RLIMIT_AS, (max_memory_bytes, max_memory_bytes))
        return True
    except (ValueError, OSError):
        return False


def log_resource_usage(logger, sample_id=None):
    """
    Log current resource usage (memory and CPU).
    """
    mem_usage = get_memory_usage()
    cpu_percent = psutil.cpu_percent()

    message = f"Resource usage: Memory: {mem_usage:.2f} MB, CPU: {cpu_percent}%"
    if sample_id:
        message = f"Sample {sample_id}: {message}"

    logger.debug(message)
