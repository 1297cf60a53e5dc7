"""
Thread-safe rate-limited logging utilities.

A flapping RPC endpoint makes the grind loop hit the same error over and
over; this keeps each distinct message to one log line per minute.
"""
import logging
import threading
from typing import Optional

from cachetools import TTLCache

logger = logging.getLogger(__name__)

# Seen messages expire after a minute
_error_log_cache = TTLCache(maxsize=100, ttl=60)
_error_log_cache_lock = threading.RLock()


def rate_limited_log(
    message: str,
    level: str = "warning",
    logger_instance: Optional[logging.Logger] = None
) -> bool:
    """
    Log a message unless the same message was logged recently.

    Args:
        message: Message to log
        level: Log level (debug, info, warning, error, critical)
        logger_instance: Logger to use (defaults to module logger)

    Returns:
        True if the message was emitted, False if it was suppressed
    """
    log_instance = logger_instance or logger
    log_method = getattr(log_instance, level.lower(), log_instance.warning)

    key = f"{level}:{message}"
    with _error_log_cache_lock:
        if key in _error_log_cache:
            return False
        log_method(message)
        _error_log_cache[key] = True
    return True
