"""
Setup command implementation.

Provisions the Rust toolchain from the cache, installs auxiliary tools,
prints tool versions, runs the custom command and writes changed toolchain
state back to the cache.
"""

import logging
from pathlib import Path
from typing import Optional

from rustcache.cli.utils import print_box, print_error, print_warning
from rustcache.config.settings import SetupConfig, load_settings
from rustcache.core.environment import RuntimeEnvironment
from rustcache.core.exceptions import RustCacheError
from rustcache.core.locking import cache_lock
from rustcache.toolchain.cache import CacheManager, CacheState
from rustcache.toolchain.rustup import RustupInstaller
from rustcache.tools.installer import GITHUB_PROXY, MDBOOK, VersionedToolInstaller

logger = logging.getLogger(__name__)


class SetupRun:
    """
    One provisioning run.

    Owns the environment overlay shared by every step so that nothing
    leaks into the environment of the calling process.
    """

    def __init__(
        self,
        config: SetupConfig,
        env: Optional[RuntimeEnvironment] = None,
    ):
        self.config = config
        self.env = env or RuntimeEnvironment()
        self.rustup = RustupInstaller(config, self.env)
        self.cache = CacheManager(config, self.rustup)
        self.mdbook = VersionedToolInstaller(
            MDBOOK,
            config.bin_dir,
            proxy_prefix=GITHUB_PROXY if config.enable_proxy else "",
        )

    def provision(self) -> None:
        """Toolchain, auxiliary tools and version report."""
        if self.cache.prepare() is CacheState.PARTIAL:
            print_warning(
                f"Incomplete Rust cache in {self.config.cache_dir} was rebuilt"
            )

        self.mdbook.ensure(self.config.mdbook_version)
        self.env.prepend_path(self.config.bin_dir)
        logger.info(f"PATH={self.env.path}")

        self.report_versions()

    def report_versions(self) -> None:
        """Print tool versions; a tool that cannot report one is fatal."""
        print_box("VERSION")
        self.env.run(["cargo", "--version"], step="get cargo version")
        self.env.run(["rustup", "--version"], step="get rustup version")
        if self.config.mdbook_version:
            self.env.run(["mdbook", "--version"], step="get mdbook version")

    def execute_custom_command(self) -> int:
        """
        Run the custom command, then write back the toolchain state.

        Returns:
            Exit code of the custom command; write-back only happens on 0
        """
        command = self.config.custom_command
        if not command:
            return 0

        logger.info(f"Executing: {command}")
        result = self.env.run(
            command, step="run custom command", shell=True, check=False
        )
        if result.returncode != 0:
            logger.error(
                f"Custom command failed with exit code {result.returncode}, "
                "cache not updated"
            )
            return result.returncode

        self.cache.write_back()
        return 0


def run(args) -> int:
    """
    Run the setup command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    logger.debug(f"Arguments: {args}")

    try:
        config = load_settings(args)
    except RustCacheError as e:
        logger.error(f"Invalid configuration: {e}")
        print_error("Invalid configuration", str(e))
        return 1

    setup = SetupRun(config)
    logger.info(f"RUST_LOG={setup.env.get('RUST_LOG', '')}")
    logger.info(f"CURRENT_PATH={Path.cwd()}")

    try:
        with cache_lock(config.cache_dir, timeout=config.lock_timeout):
            setup.provision()
            return setup.execute_custom_command()
    except RustCacheError as e:
        logger.error(str(e))
        print_error(str(e))
        return 1
