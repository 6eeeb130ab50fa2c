"""
Platform detection for rustcache.

Detects the current OS and CPU architecture to pick the right prebuilt
release asset (Rust target triple) for auxiliary tools.

Usage:
    from rustcache.core.platform import detect_platform

    info = detect_platform()
    print(info.platform_string())   # e.g. 'linux-x64'
"""

import functools
import platform
from dataclasses import dataclass

_OS_NAMES = {
    "linux": "linux",
    "darwin": "macos",
    "windows": "windows",
}

_ARCH_ALIASES = {
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "x86",
    "i686": "x86",
    "x86": "x86",
}


@dataclass(frozen=True)
class PlatformInfo:
    """
    Platform information.

    Unknown systems and machines keep their lowercased raw names, so
    callers decide whether a platform is supported.

    Attributes:
        os: Operating system ('linux', 'macos', 'windows', or raw name)
        arch: CPU architecture ('x64', 'arm64', 'x86', 'arm', or raw name)
    """

    os: str
    arch: str

    def platform_string(self) -> str:
        """
        Key used by release tables.

        Example:
            >>> PlatformInfo('macos', 'arm64').platform_string()
            'macos-arm64'
        """
        return f"{self.os}-{self.arch}"

    def __str__(self) -> str:
        return self.platform_string()


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """Detect the running platform (cached per process)."""
    return PlatformInfo(
        os=normalize_os(platform.system()),
        arch=normalize_arch(platform.machine()),
    )


def normalize_os(system: str) -> str:
    system = system.lower()
    return _OS_NAMES.get(system, system)


def normalize_arch(machine: str) -> str:
    machine = machine.lower()
    if machine in _ARCH_ALIASES:
        return _ARCH_ALIASES[machine]
    if machine.startswith("arm"):
        return "arm"
    return machine


def clear_platform_cache():
    detect_platform.cache_clear()
