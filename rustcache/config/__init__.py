"""Configuration loading for rustcache."""

from .settings import (
    SetupConfig,
    load_settings,
    load_yaml_config,
    DEFAULT_TOOLCHAIN,
    DEFAULT_PROFILE,
    DEFAULT_CACHE_DIR,
    VALID_PROFILES,
)

__all__ = [
    "SetupConfig",
    "load_settings",
    "load_yaml_config",
    "DEFAULT_TOOLCHAIN",
    "DEFAULT_PROFILE",
    "DEFAULT_CACHE_DIR",
    "VALID_PROFILES",
]
