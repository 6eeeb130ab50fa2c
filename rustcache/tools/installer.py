"""
Versioned installer for single-binary release tools.

A tool is installed into the cache's ``bin`` directory next to a marker
file recording the version it came from:

    <cache_dir>/bin/
        mdbook
        mdbook-cache-version

The download only happens when the binary or marker is missing or the
marker names a different version. The marker is written last, so an
interrupted install is retried on the next run.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from rustcache.core.download import (
    DownloadError,
    download_file,
    log_progress,
    with_proxy_prefix,
)
from rustcache.core.exceptions import ToolInstallError
from rustcache.core.filesystem import (
    FilesystemError,
    atomic_write,
    ensure_directory,
    extract_archive,
    make_executable,
    temporary_directory,
)
from rustcache.core.platform import PlatformInfo, detect_platform

logger = logging.getLogger(__name__)

GITHUB_PROXY = "https://gh-proxy.com/"

# Rust target triple and archive extension per platform
RELEASE_TARGETS = {
    "linux-x64": ("x86_64-unknown-linux-gnu", "tar.gz"),
    "linux-arm64": ("aarch64-unknown-linux-musl", "tar.gz"),
    "macos-x64": ("x86_64-apple-darwin", "tar.gz"),
    "macos-arm64": ("aarch64-apple-darwin", "tar.gz"),
    "windows-x64": ("x86_64-pc-windows-msvc", "zip"),
}


@dataclass(frozen=True)
class ToolRelease:
    """
    Where a tool's release archives live.

    Attributes:
        name: Tool name, also the binary name
        url_template: Archive URL with {version}, {target} and {ext} fields
    """

    name: str
    url_template: str

    def binary_name(self, platform: PlatformInfo) -> str:
        if platform.os == "windows":
            return f"{self.name}.exe"
        return self.name

    def download_url(self, version: str, platform: PlatformInfo) -> str:
        """
        Release archive URL for a version on a platform.

        Raises:
            ToolInstallError: If the tool has no build for the platform
        """
        key = platform.platform_string()
        if key not in RELEASE_TARGETS:
            raise ToolInstallError(f"No {self.name} release for platform: {key}")
        target, ext = RELEASE_TARGETS[key]
        return self.url_template.format(version=version, target=target, ext=ext)


MDBOOK = ToolRelease(
    name="mdbook",
    url_template=(
        "https://github.com/rust-lang/mdBook/releases/download/"
        "v{version}/mdbook-v{version}-{target}.{ext}"
    ),
)


class VersionedToolInstaller:
    """
    Install a tool release at a requested version, skipping cache hits.

    Args:
        tool: Release description
        bin_dir: Directory the binary and its marker live in
        proxy_prefix: Optional URL prefix for release downloads
        platform: Platform information (auto-detected if None)
    """

    def __init__(
        self,
        tool: ToolRelease,
        bin_dir: Path,
        proxy_prefix: str = "",
        platform: Optional[PlatformInfo] = None,
    ):
        self.tool = tool
        self.bin_dir = Path(bin_dir)
        self.proxy_prefix = proxy_prefix
        self.platform = platform or detect_platform()

    @property
    def binary_path(self) -> Path:
        return self.bin_dir / self.tool.binary_name(self.platform)

    @property
    def marker_path(self) -> Path:
        return self.bin_dir / f"{self.tool.name}-cache-version"

    def installed_version(self) -> Optional[str]:
        """
        Version recorded by the marker, or None when there is none.

        Trailing newlines are dropped; anything else must match exactly.
        An unreadable marker counts as missing so the tool is reinstalled.
        """
        if not self.marker_path.is_file():
            return None
        try:
            content = self.marker_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Ignoring unreadable {self.marker_path.name}: {e}")
            return None
        return content.rstrip("\n")

    def needs_install(self, version: str) -> bool:
        """True unless both binary and marker exist and the marker equals version."""
        if not self.binary_path.is_file():
            return True
        return self.installed_version() != version

    def ensure(self, version: str) -> bool:
        """
        Make ``version`` of the tool available in the bin directory.

        Args:
            version: Requested version; empty disables the tool

        Returns:
            True if a download and install happened, False otherwise

        Raises:
            ToolInstallError: If any install step fails
        """
        try:
            ensure_directory(self.bin_dir)
        except FilesystemError as e:
            raise ToolInstallError(f"Failed to create bin dir: {e}") from e

        if not version:
            return False

        if not self.needs_install(version):
            logger.info(f"Using cached {self.tool.name}")
            return False

        logger.info(f"Installing {self.tool.name} v{version}...")
        self._install(version)
        logger.info(f"{self.tool.name} is installed")
        return True

    def _install(self, version: str) -> None:
        name = self.tool.name
        url = with_proxy_prefix(
            self.tool.download_url(version, self.platform), self.proxy_prefix
        )
        archive_name = url.rsplit("/", 1)[-1]

        with temporary_directory(prefix=f"rustcache_{name}_") as tmp:
            archive = tmp / archive_name
            try:
                download_file(url, archive, progress_callback=log_progress)
            except DownloadError as e:
                raise ToolInstallError(f"Failed to download {name}: {e}") from e

            extract_dir = tmp / "extract"
            try:
                extract_archive(archive, extract_dir)
            except FilesystemError as e:
                raise ToolInstallError(f"Failed to extract {name}: {e}") from e

            extracted = self._find_binary(extract_dir)
            if extracted is None:
                raise ToolInstallError(
                    f"Failed to move {name} binary: "
                    f"'{self.binary_path.name}' not found in archive"
                )

            try:
                if self.binary_path.exists():
                    self.binary_path.unlink()
                shutil.move(str(extracted), str(self.binary_path))
            except OSError as e:
                raise ToolInstallError(f"Failed to move {name} binary: {e}") from e

        try:
            make_executable(self.binary_path)
        except FilesystemError as e:
            raise ToolInstallError(f"Failed to make {name} executable: {e}") from e

        atomic_write(self.marker_path, version)

    def _find_binary(self, directory: Path) -> Optional[Path]:
        """Locate the binary in the extracted tree (top level first)."""
        expected = self.binary_path.name
        candidate = directory / expected
        if candidate.is_file():
            return candidate
        for item in sorted(directory.rglob(expected)):
            if item.is_file():
                return item
        return None
