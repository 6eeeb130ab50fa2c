"""
Run configuration for rustcache.

Settings are merged from four layers, highest precedence first:

1. Command-line options
2. Environment variables (SETUP_RUST_TOOLCHAIN, SETUP_RUST_PROFILE,
   SETUP_MDBOOK, CACHE_DIR)
3. YAML configuration file (``--config``)
4. Built-in defaults
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from rustcache.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_TOOLCHAIN = "nightly"
DEFAULT_PROFILE = "minimal"
DEFAULT_CACHE_DIR = ".cache"
DEFAULT_LOCK_TIMEOUT = 600.0

# rustup-init accepts only these profiles
VALID_PROFILES = ("minimal", "default", "complete")

ENV_TOOLCHAIN = "SETUP_RUST_TOOLCHAIN"
ENV_PROFILE = "SETUP_RUST_PROFILE"
ENV_MDBOOK = "SETUP_MDBOOK"
ENV_CACHE_DIR = "CACHE_DIR"


@dataclass
class SetupConfig:
    """Resolved settings for one run."""

    toolchain: str = DEFAULT_TOOLCHAIN
    profile: str = DEFAULT_PROFILE
    enable_proxy: bool = False
    mdbook_version: str = ""
    cache_dir: Path = Path(DEFAULT_CACHE_DIR)
    clear_cache: bool = False
    custom_command: Optional[str] = None
    home_dir: Path = field(default_factory=Path.home)
    lock_timeout: float = DEFAULT_LOCK_TIMEOUT

    @property
    def cargo_home(self) -> Path:
        """Runtime location of cargo state."""
        return self.home_dir / ".cargo"

    @property
    def rustup_home(self) -> Path:
        """Runtime location of rustup state."""
        return self.home_dir / ".rustup"

    @property
    def bin_dir(self) -> Path:
        """Cache subdirectory for auxiliary tool binaries."""
        return self.cache_dir / "bin"

    def validate(self) -> None:
        """
        Check values that would otherwise fail late in an external command.

        Raises:
            ConfigError: If a value is invalid
        """
        if not self.toolchain:
            raise ConfigError("Rust toolchain must not be empty")
        if self.profile not in VALID_PROFILES:
            raise ConfigError(
                f"Invalid rust profile '{self.profile}'. "
                f"Valid: {', '.join(VALID_PROFILES)}"
            )
        if self.lock_timeout < 0:
            raise ConfigError("Lock timeout must not be negative")


def load_yaml_config(config_file: Path, required: bool = False) -> Dict[str, Any]:
    """
    Load and parse a YAML configuration file.

    Args:
        config_file: Path to YAML configuration file
        required: If True, raise error if file doesn't exist

    Returns:
        Configuration dictionary (empty dict if file doesn't exist and not required)

    Raises:
        FileNotFoundError: If required=True and file doesn't exist
        ConfigError: If YAML parsing fails or the document is not a mapping
    """
    if not config_file.exists():
        if required:
            raise FileNotFoundError(f"Configuration file not found: {config_file}")
        logger.debug(f"Config file not found (optional): {config_file}")
        return {}

    logger.debug(f"Loading configuration from {config_file}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

    config = config or {}
    if not isinstance(config, dict):
        raise ConfigError(f"Configuration in {config_file} must be a mapping")
    return config


def _section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = config.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"Configuration section '{name}' must be a mapping")
    return value


def _pick(*candidates):
    """First candidate that is not None."""
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


def _flag(value: Any, name: str) -> bool:
    """Accept only real booleans, so a quoted "false" is not read as true."""
    if not isinstance(value, bool):
        raise ConfigError(f"'{name}' must be true or false, got {value!r}")
    return value


def load_settings(
    args: Any,
    environ: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> SetupConfig:
    """
    Build a SetupConfig from parsed CLI arguments, environment and YAML.

    Args:
        args: Parsed argparse namespace (options left unset are None)
        environ: Environment mapping (defaults to os.environ)
        cwd: Directory relative cache paths are resolved against

    Returns:
        Validated SetupConfig

    Raises:
        ConfigError: If the configuration is invalid
    """
    environ = os.environ if environ is None else environ
    cwd = Path.cwd() if cwd is None else Path(cwd)

    file_config: Dict[str, Any] = {}
    config_path = getattr(args, "config", None)
    if config_path:
        try:
            file_config = load_yaml_config(Path(config_path), required=True)
        except FileNotFoundError as e:
            raise ConfigError(str(e)) from e

    rust = _section(file_config, "rust")
    proxy = _section(file_config, "proxy")
    tools = _section(file_config, "tools")
    cache = _section(file_config, "cache")

    cache_dir = Path(
        str(
            _pick(
                getattr(args, "cache_dir", None),
                environ.get(ENV_CACHE_DIR),
                cache.get("dir"),
                DEFAULT_CACHE_DIR,
            )
        )
    ).expanduser()
    if not cache_dir.is_absolute():
        cache_dir = cwd / cache_dir

    home = environ.get("HOME")

    try:
        settings = SetupConfig(
            toolchain=str(
                _pick(
                    getattr(args, "rust_toolchain", None),
                    environ.get(ENV_TOOLCHAIN),
                    rust.get("toolchain"),
                    DEFAULT_TOOLCHAIN,
                )
            ),
            profile=str(
                _pick(
                    getattr(args, "rust_profile", None),
                    environ.get(ENV_PROFILE),
                    rust.get("profile"),
                    DEFAULT_PROFILE,
                )
            ),
            enable_proxy=_flag(
                _pick(getattr(args, "enable_proxy", None), proxy.get("enabled"), False),
                "proxy.enabled",
            ),
            mdbook_version=str(
                _pick(
                    getattr(args, "install_mdbook", None),
                    environ.get(ENV_MDBOOK),
                    tools.get("mdbook"),
                    "",
                )
            ),
            cache_dir=cache_dir,
            clear_cache=bool(getattr(args, "clear_cache", None) or False),
            custom_command=getattr(args, "execute_command", None) or None,
            home_dir=Path(home) if home else Path.home(),
            lock_timeout=float(
                _pick(
                    getattr(args, "lock_timeout", None),
                    cache.get("lock_timeout"),
                    DEFAULT_LOCK_TIMEOUT,
                )
            ),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration value: {e}") from e

    settings.validate()
    return settings
