"""
Network downloads with progress reporting.

Downloads are single-shot: a failed request raises DownloadError and the
caller decides what to do. The calling CI system owns retry semantics.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import requests
from requests.exceptions import RequestException

from rustcache.core.exceptions import RustCacheError

logger = logging.getLogger(__name__)


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float
    speed_bps: float  # bytes per second

    def __str__(self) -> str:
        """Format progress for display."""
        return format_progress(self)


class DownloadError(RustCacheError):
    """Exception raised when download fails."""

    pass


def with_proxy_prefix(url: str, prefix: str = "") -> str:
    """
    Rewrite a URL through a prefix-style proxy.

    Args:
        url: Original URL
        prefix: Proxy prefix (e.g. 'https://gh-proxy.com/'), empty for none

    Returns:
        The proxied URL, or the original URL when prefix is empty

    Example:
        >>> with_proxy_prefix("https://github.com/a/b", "https://gh-proxy.com/")
        'https://gh-proxy.com/https://github.com/a/b'
    """
    if not prefix:
        return url
    return f"{prefix}{url}"


def download_file(
    url: str,
    destination: Path,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    timeout: int = 30,
) -> Path:
    """
    Download file from URL to destination.

    Args:
        url: URL to download from
        destination: Local path to save file
        progress_callback: Optional callback for progress updates
        timeout: Request timeout in seconds

    Returns:
        Path to downloaded file

    Raises:
        DownloadError: If the request fails or returns an error status
        ValueError: If URL or destination is invalid

    Example:
        >>> from rustcache.core.download import download_file
        >>> download_file("https://sh.rustup.rs", Path("/tmp/rustup-init.sh"))
    """
    if not url:
        raise ValueError("URL cannot be empty")

    if not destination:
        raise ValueError("Destination path cannot be empty")

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    try:
        return _download_with_progress(
            url=url,
            destination=destination,
            progress_callback=progress_callback,
            timeout=timeout,
        )
    except RequestException as e:
        raise DownloadError(f"Failed to download {url}: {e}") from e
    except OSError as e:
        raise DownloadError(f"Failed to write {destination}: {e}") from e


class _ProgressReporter:
    """Throttle progress callbacks to one per interval, plus the final chunk."""

    def __init__(
        self,
        callback: Optional[Callable[[DownloadProgress], None]],
        total: int,
        interval: float = 0.5,
    ):
        self.callback = callback
        self.total = total
        self.interval = interval
        self.started = time.monotonic()
        self.last_report = self.started

    def update(self, downloaded: int) -> None:
        if self.callback is None:
            return
        now = time.monotonic()
        if now - self.last_report < self.interval and downloaded != self.total:
            return
        self.last_report = now
        elapsed = now - self.started
        self.callback(
            DownloadProgress(
                bytes_downloaded=downloaded,
                total_bytes=self.total or downloaded,
                percentage=downloaded / self.total * 100 if self.total else 0,
                speed_bps=downloaded / elapsed if elapsed > 0 else 0,
            )
        )


def _download_with_progress(
    url: str,
    destination: Path,
    progress_callback: Optional[Callable[[DownloadProgress], None]],
    timeout: int,
) -> Path:
    logger.info(f"Downloading from {url}")

    with requests.get(url, stream=True, timeout=timeout) as response:
        response.raise_for_status()
        total = int(response.headers.get("content-length") or 0)
        reporter = _ProgressReporter(progress_callback, total)

        downloaded = 0
        with open(destination, "wb") as f:
            for chunk in response.iter_content(chunk_size=8192):
                if chunk:
                    f.write(chunk)
                    downloaded += len(chunk)
                    reporter.update(downloaded)

    logger.debug(f"Download complete: {destination} ({downloaded} bytes)")
    return destination


def format_progress(progress: DownloadProgress) -> str:
    """
    Format progress for display.

    Example:
        >>> progress = DownloadProgress(52428800, 104857600, 50.0, 1048576)
        >>> print(format_progress(progress))
        50.0/100.0 MB (50.0%) at 1.0 MB/s
    """
    mb_downloaded = progress.bytes_downloaded / 1024 / 1024
    mb_total = progress.total_bytes / 1024 / 1024
    speed_mbps = progress.speed_bps / 1024 / 1024

    if progress.total_bytes > 0 and progress.percentage > 0:
        return (
            f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
            f"({progress.percentage:.1f}%) "
            f"at {speed_mbps:.1f} MB/s"
        )
    return f"{mb_downloaded:.1f} MB at {speed_mbps:.1f} MB/s"


def log_progress(progress: DownloadProgress) -> None:
    """Progress callback that reports through the module logger."""
    logger.debug(format_progress(progress))
