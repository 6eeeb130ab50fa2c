"""
Auxiliary tools installed next to the Rust toolchain.

Tools are prebuilt release binaries cached under ``<cache_dir>/bin`` and
reinstalled only when the requested version changes.
"""

from .installer import (
    GITHUB_PROXY,
    MDBOOK,
    ToolRelease,
    VersionedToolInstaller,
)

__all__ = [
    "GITHUB_PROXY",
    "MDBOOK",
    "ToolRelease",
    "VersionedToolInstaller",
]
