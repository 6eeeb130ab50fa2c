"""
Cache directory locking for rustcache.

A run reads, replaces and writes back whole trees under the cache
directory. Two runs sharing one cache directory must not interleave, so
each run holds a file lock for its whole duration.

The lock file lives next to the cache directory (``<cache_dir>.lock``)
rather than inside it, because ``--clear-cache`` deletes the directory.

Usage:
    from rustcache.core.locking import cache_lock

    with cache_lock(Path(".cache"), timeout=600):
        ...
"""

import logging
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout

from rustcache.core.exceptions import CacheLockTimeout

logger = logging.getLogger(__name__)


def lock_path_for(cache_dir: Path) -> Path:
    """
    Get the lock file path guarding a cache directory.

    Example:
        >>> lock_path_for(Path("/work/.cache"))
        PosixPath('/work/.cache.lock')
    """
    cache_dir = Path(cache_dir)
    return cache_dir.parent / f"{cache_dir.name}.lock"


@contextmanager
def cache_lock(cache_dir: Path, timeout: float = 600):
    """
    Acquire the lock for a cache directory.

    Args:
        cache_dir: Cache directory to guard
        timeout: Maximum wait time in seconds

    Yields:
        Path to the lock file

    Raises:
        CacheLockTimeout: If lock can't be acquired within timeout
    """
    lock_path = lock_path_for(cache_dir)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(str(lock_path), timeout=timeout)

    try:
        lock.acquire()
    except Timeout as e:
        logger.error(
            f"Could not acquire cache lock after {timeout}s. "
            "Another rustcache process may be using this cache."
        )
        raise CacheLockTimeout(
            f"Could not acquire cache lock {lock_path} after {timeout}s. "
            "Another rustcache process may be using this cache."
        ) from e

    logger.debug(f"Acquired cache lock: {lock_path}")
    try:
        yield lock_path
    finally:
        lock.release()
        logger.debug(f"Released cache lock: {lock_path}")
