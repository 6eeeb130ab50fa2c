"""
Rust toolchain provisioning.

Installs rustup through its bootstrap script and keeps its state
directories cached between runs.
"""

from .cache import CacheManager, CacheState
from .rustup import RustupInstaller, render_cargo_config

__all__ = [
    "CacheManager",
    "CacheState",
    "RustupInstaller",
    "render_cargo_config",
]
