"""
Centralized exception hierarchy for rustcache.

Every fatal step raises a subclass of RustCacheError whose message names
the step that failed, so the CLI can report it and exit non-zero.
"""

from typing import Optional


# ============================================================================
# Base Exceptions
# ============================================================================


class RustCacheError(Exception):
    """Base exception for all rustcache errors."""

    pass


class ConfigError(RustCacheError):
    """Configuration parsing or validation error."""

    pass


# ============================================================================
# External Command Exceptions
# ============================================================================


class CommandError(RustCacheError):
    """Raised when an external command exits non-zero or cannot be started."""

    def __init__(self, step: str, returncode: Optional[int] = None, detail: str = ""):
        self.step = step
        self.returncode = returncode
        msg = f"Failed to {step}"
        if returncode is not None:
            msg += f" (exit code {returncode})"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


# ============================================================================
# Cache Exceptions
# ============================================================================


class CacheError(RustCacheError):
    """Base exception for cache directory errors."""

    pass


class CacheStateError(CacheError):
    """Cache directory is in a state that cannot be used."""

    pass


class CacheCopyError(CacheError):
    """Copying between the cache and the runtime directories failed."""

    pass


class CacheLockTimeout(CacheError):
    """Raised when the cache lock cannot be acquired within timeout."""

    pass


# ============================================================================
# Toolchain Exceptions
# ============================================================================


class ToolchainError(RustCacheError):
    """Base exception for toolchain-related errors."""

    pass


class ToolchainInstallError(ToolchainError):
    """Raised when the rustup bootstrap installer fails."""

    pass


class ToolchainEnvironmentError(ToolchainError):
    """Expected rustup state directories are missing after installation."""

    pass


# ============================================================================
# Auxiliary Tool Exceptions
# ============================================================================


class ToolInstallError(RustCacheError):
    """Error downloading or installing an auxiliary tool."""

    pass
