"""
rustup bootstrap and toolchain selection.

Wraps the external steps that talk to rustup: running the rustup-init
script, writing the cargo client configuration, exposing ``CARGO_HOME/bin``
to later commands and selecting the default toolchain.
"""

import logging
from pathlib import Path

from rustcache.config.settings import SetupConfig
from rustcache.core.download import DownloadError, download_file, log_progress
from rustcache.core.environment import RuntimeEnvironment
from rustcache.core.exceptions import (
    CommandError,
    ToolchainEnvironmentError,
    ToolchainInstallError,
)
from rustcache.core.filesystem import atomic_write, temporary_directory

logger = logging.getLogger(__name__)

RUSTUP_INIT_URL = "https://sh.rustup.rs"

# rsproxy mirror for China mainland
RSPROXY_INIT_URL = "https://rsproxy.cn/rustup-init.sh"
RSPROXY_DIST_SERVER = "https://rsproxy.cn"
RSPROXY_UPDATE_ROOT = "https://rsproxy.cn/rustup"

CARGO_CONFIG = """
[net]
git-fetch-with-cli = true
"""

CARGO_CONFIG_RSPROXY = """
# Mirror for China Mainland
[source.crates-io]
replace-with = "rsproxy-sparse"
[source.rsproxy]
registry = "https://rsproxy.cn/crates.io-index"
[source.rsproxy-sparse]
registry = "sparse+https://rsproxy.cn/index/"
[registries.rsproxy]
index = "https://rsproxy.cn/crates.io-index"
"""


def render_cargo_config(enable_proxy: bool) -> str:
    """
    Build the content of ``CARGO_HOME/config.toml``.

    Example:
        >>> "[source.crates-io]" in render_cargo_config(enable_proxy=True)
        True
    """
    content = CARGO_CONFIG
    if enable_proxy:
        content += CARGO_CONFIG_RSPROXY
    return content


class RustupInstaller:
    """
    Drive rustup for one run.

    Args:
        config: Run configuration
        env: Environment overlay shared with the rest of the run
    """

    def __init__(self, config: SetupConfig, env: RuntimeEnvironment):
        self.config = config
        self.env = env

        # rustup-init and rustup itself read these
        self.env.set("CARGO_HOME", str(config.cargo_home))
        self.env.set("RUSTUP_HOME", str(config.rustup_home))

        if config.enable_proxy:
            logger.info("Using rsproxy mirror for rustup")
            self.env.set("RUSTUP_DIST_SERVER", RSPROXY_DIST_SERVER)
            self.env.set("RUSTUP_UPDATE_ROOT", RSPROXY_UPDATE_ROOT)

    @property
    def init_url(self) -> str:
        """URL of the rustup-init shell script."""
        return RSPROXY_INIT_URL if self.config.enable_proxy else RUSTUP_INIT_URL

    def install(self) -> None:
        """
        Run the rustup bootstrap installer non-interactively.

        Raises:
            ToolchainInstallError: If the script cannot be fetched or fails
            ToolchainEnvironmentError: If rustup did not create its homes
        """
        logger.info(
            f"Installing Rust (toolchain: {self.config.toolchain}, "
            f"profile: {self.config.profile})..."
        )

        with temporary_directory(prefix="rustcache_rustup_") as tmp:
            script = tmp / "rustup-init.sh"
            try:
                download_file(self.init_url, script, progress_callback=log_progress)
            except DownloadError as e:
                raise ToolchainInstallError(f"Failed to install Rust: {e}") from e

            try:
                self.env.run(
                    [
                        "sh",
                        str(script),
                        "--default-toolchain",
                        self.config.toolchain,
                        "--profile",
                        self.config.profile,
                        "-y",
                    ],
                    step="install Rust",
                )
            except CommandError as e:
                raise ToolchainInstallError(str(e)) from e

        for home in (self.config.cargo_home, self.config.rustup_home):
            if not home.is_dir():
                raise ToolchainEnvironmentError(
                    f"{home} does not exist after installing Rust"
                )

    def write_cargo_config(self) -> Path:
        """
        Write the cargo client configuration, with mirror registries in proxy mode.

        Returns:
            Path to the written config.toml
        """
        config_file = self.config.cargo_home / "config.toml"
        atomic_write(config_file, render_cargo_config(self.config.enable_proxy))
        logger.debug(f"Wrote cargo config: {config_file}")
        return config_file

    def load_env_hook(self) -> None:
        """Equivalent of sourcing ``CARGO_HOME/env``: put cargo's bin dir on PATH."""
        self.env.prepend_path(self.config.cargo_home / "bin")

    def set_default_toolchain(self) -> None:
        """
        Make the requested toolchain the default one.

        Raises:
            CommandError: If ``rustup default`` fails
        """
        logger.info(f"Setting default toolchain: {self.config.toolchain}")
        self.env.run(
            ["rustup", "default", self.config.toolchain],
            step=f"set default toolchain {self.config.toolchain}",
        )
