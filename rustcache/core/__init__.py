"""
Core functionality for rustcache.

This package contains the foundational modules that the cache manager and
the tool installer depend on.
"""

from .environment import RuntimeEnvironment

from .locking import cache_lock, lock_path_for

from .platform import PlatformInfo, detect_platform, clear_platform_cache

from .exceptions import (
    RustCacheError,
    ConfigError,
    CommandError,
    CacheError,
    CacheStateError,
    CacheCopyError,
    CacheLockTimeout,
    ToolchainError,
    ToolchainInstallError,
    ToolchainEnvironmentError,
    ToolInstallError,
)

__all__ = [
    "RuntimeEnvironment",
    "cache_lock",
    "lock_path_for",
    "PlatformInfo",
    "detect_platform",
    "clear_platform_cache",
    "RustCacheError",
    "ConfigError",
    "CommandError",
    "CacheError",
    "CacheStateError",
    "CacheCopyError",
    "CacheLockTimeout",
    "ToolchainError",
    "ToolchainInstallError",
    "ToolchainEnvironmentError",
    "ToolInstallError",
]
