"""
Toolchain cache manager.

Keeps a snapshot of rustup's state directories under the cache directory:

    <cache_dir>/
        cargo/      snapshot of CARGO_HOME
        rustup/     snapshot of RUSTUP_HOME
        bin/        auxiliary tool binaries (see rustcache.tools)

A cold cache (no snapshot) triggers a fresh rustup install that seeds the
cache. A warm cache (both snapshots) is restored into the runtime locations
instead. A partial cache (one snapshot only) is discarded and rebuilt.
"""

import enum
import logging
import os
from pathlib import Path
from typing import Optional

from rustcache.config.settings import SetupConfig
from rustcache.core.exceptions import CacheCopyError, CacheStateError
from rustcache.core.filesystem import (
    FilesystemError,
    chown_tree,
    copy_tree_contents,
    ensure_directory,
    safe_rmtree,
)
from rustcache.toolchain.rustup import RustupInstaller

logger = logging.getLogger(__name__)

CARGO_SUBDIR = "cargo"
RUSTUP_SUBDIR = "rustup"


class CacheState(enum.Enum):
    """Warmth of the toolchain cache."""

    COLD = "cold"
    WARM = "warm"
    PARTIAL = "partial"


class CacheManager:
    """
    Establish a rustup installation from (or into) the cache directory.

    Args:
        config: Run configuration
        installer: rustup driver sharing the run's environment overlay
    """

    def __init__(self, config: SetupConfig, installer: RustupInstaller):
        self.config = config
        self.installer = installer
        self.cache_dir = Path(config.cache_dir)

    @property
    def cargo_cache(self) -> Path:
        return self.cache_dir / CARGO_SUBDIR

    @property
    def rustup_cache(self) -> Path:
        return self.cache_dir / RUSTUP_SUBDIR

    def _pairs(self):
        """(runtime dir, cache snapshot, label) for both rustup homes."""
        return (
            (self.config.cargo_home, self.cargo_cache, "cargo"),
            (self.config.rustup_home, self.rustup_cache, "rustup"),
        )

    def state(self) -> CacheState:
        """Classify the cache directory."""
        present = [cache.is_dir() for _, cache, _ in self._pairs()]
        if all(present):
            return CacheState.WARM
        if any(present):
            return CacheState.PARTIAL
        return CacheState.COLD

    def clear(self) -> bool:
        """
        Delete the whole cache directory.

        Returns:
            True if a directory was removed
        """
        if not (self.cache_dir.exists() or self.cache_dir.is_symlink()):
            return False
        logger.info(f"Clear cache dir: {self.cache_dir.resolve()}")
        safe_rmtree(self.cache_dir)
        return True

    def prepare(self) -> CacheState:
        """
        Make a working toolchain available and the cache hold a snapshot of it.

        Returns:
            The cache state found before any install or restore

        Raises:
            CacheStateError: If the cache directory cannot be created
            CacheCopyError: If seeding or restoring a snapshot fails
            ToolchainError: If the rustup bootstrap fails
            CommandError: If selecting the default toolchain fails
        """
        if self.config.clear_cache:
            self.clear()

        if not self.cache_dir.exists():
            logger.info("Create cache dir...")
            try:
                ensure_directory(self.cache_dir)
            except FilesystemError as e:
                raise CacheStateError(f"Failed to create cache dir: {e}") from e

        state = self.state()
        if state is CacheState.PARTIAL:
            self._discard_partial()

        if state is CacheState.WARM:
            self.restore()
        else:
            logger.info("Rust cache does not exist, installing...")
            self.installer.install()
            self.installer.write_cargo_config()
            self.seed()

        self.installer.load_env_hook()
        self.installer.set_default_toolchain()
        return state

    def _discard_partial(self) -> None:
        for _, cache, label in self._pairs():
            if cache.is_dir():
                logger.warning(
                    f"Rust cache is incomplete ({label} snapshot without its "
                    "counterpart), rebuilding it"
                )
                safe_rmtree(cache, require_prefix=self.cache_dir)

    def seed(self) -> None:
        """Copy the runtime directories into the cache."""
        self._copy_out("cache")

    def write_back(self) -> None:
        """Copy runtime state changed by a custom command back into the cache."""
        logger.info("Writing toolchain state back to cache...")
        self._copy_out("write back")

    def _copy_out(self, action: str) -> None:
        for runtime, cache, label in self._pairs():
            try:
                count = copy_tree_contents(runtime, cache)
            except FilesystemError as e:
                raise CacheCopyError(f"Failed to {action} {label} dir: {e}") from e
            logger.debug(f"Copied {count} entries from {runtime} to {cache}")

    def restore(self, uid: Optional[int] = None, gid: Optional[int] = None) -> None:
        """
        Copy the cached snapshots into the runtime directories.

        Ownership of the restored trees is reset to the current user, since
        the cache may have been written by another user or container layer.

        Raises:
            CacheCopyError: If a copy or ownership change fails
        """
        logger.info("Restoring Rust from cache...")
        for runtime, cache, label in self._pairs():
            try:
                ensure_directory(runtime)
                count = copy_tree_contents(cache, runtime)
            except FilesystemError as e:
                raise CacheCopyError(f"Failed to restore {label} cache: {e}") from e
            logger.debug(f"Restored {count} entries from {cache} to {runtime}")

        if not hasattr(os, "chown"):
            return

        uid = os.getuid() if uid is None else uid
        gid = os.getgid() if gid is None else gid
        for runtime, _, label in self._pairs():
            try:
                chown_tree(runtime, uid, gid)
            except FilesystemError as e:
                raise CacheCopyError(
                    f"Failed to fix ownership of {label} dir: {e}"
                ) from e
