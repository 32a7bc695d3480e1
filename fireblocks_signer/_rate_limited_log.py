"""
Thread-safe rate-limited logging.

Used by the status poller so that a transaction sitting in the same status
for many polls is logged once per interval instead of on every poll.
"""
import logging
import threading
from typing import Optional

from cachetools import TTLCache

logger = logging.getLogger(__name__)

# Entries expire after an hour; callers pass shorter intervals per key
_log_cache: TTLCache = TTLCache(maxsize=1024, ttl=3600)
_log_cache_lock = threading.RLock()


def rate_limited_log(
    message: str,
    level: str = "info",
    interval: float = 60,
    logger_instance: Optional[logging.Logger] = None,
    key: Optional[str] = None,
    now: Optional[float] = None,
) -> bool:
    """
    Log a message unless the same key was logged less than ``interval`` seconds ago.

    Args:
        message: Message to log
        level: Log level name
        interval: Minimum seconds between two logs of the same key
        logger_instance: Logger to use (defaults to module logger)
        key: Dedup key (defaults to level + message)
        now: Current monotonic time, mainly for tests

    Returns:
        True if the message was emitted
    """
    log_instance = logger_instance or logger
    log_method = getattr(log_instance, level.lower(), log_instance.info)
    cache_key = key or f"{level}:{message}"
    current = now if now is not None else _log_cache.timer()

    with _log_cache_lock:
        last = _log_cache.get(cache_key)
        if last is not None and current - last < interval:
            return False
        _log_cache[cache_key] = current

    log_method(message)
    return True


def reset() -> None:
    """Forget all previously logged keys."""
    with _log_cache_lock:
        _log_cache.clear()
