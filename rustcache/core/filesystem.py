"""
File system utilities for rustcache.

This module provides the file operations the cache manager and tool
installer are built from:
- Archive extraction (tar.gz, tgz, zip) with path traversal checks
- Tree copy that merges into an existing destination (like ``cp -r src/* dst/``)
- Ownership repair for restored trees
- Safe file operations (atomic writes, safe deletion, scoped temp dirs)
"""

import os
import shutil
import stat
import sys
import tarfile
import tempfile
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Union

from rustcache.core.exceptions import RustCacheError


# ============================================================================
# Error Handling
# ============================================================================


class FilesystemError(RustCacheError):
    """Base exception for filesystem operations."""

    pass


class ArchiveExtractionError(FilesystemError):
    """Failed to extract an archive."""

    pass


class UnsupportedArchiveFormat(ArchiveExtractionError):
    """Archive format is not supported."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check if path is relative to (under) parent directory.

    Example:
        >>> is_relative_to(Path("/home/user/.cargo/bin"), Path("/home/user"))
        True
    """
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists (idempotent).

    Raises:
        FilesystemError: If the directory cannot be created
    """
    path = Path(path)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Failed to create directory '{path}': {e}") from e
    return path


# ============================================================================
# Archive Extraction
# ============================================================================


def _check_member(name: str, destination: Path) -> None:
    """
    Reject archive members that would land outside the destination.

    Raises:
        InsecureArchiveError: If the member path escapes the destination
    """
    if not is_relative_to((destination / name).resolve(), destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{name}' escapes the extraction directory"
        )


def _extract_zip(archive_path: Path, destination: Path) -> None:
    with zipfile.ZipFile(archive_path) as zf:
        for name in zf.namelist():
            _check_member(name, destination)
        zf.extractall(destination)


def _extract_tar_gz(archive_path: Path, destination: Path) -> None:
    with tarfile.open(archive_path, "r:gz") as tar:
        for member in tar.getmembers():
            _check_member(member.name, destination)
        if sys.version_info >= (3, 12):
            tar.extractall(destination, filter="data")
        else:
            tar.extractall(destination)


# Archive suffix -> extractor
_EXTRACTORS = (
    (".zip", _extract_zip),
    (".tar.gz", _extract_tar_gz),
    (".tgz", _extract_tar_gz),
)


def extract_archive(
    archive_path: Union[str, Path], destination: Union[str, Path]
) -> None:
    """
    Extract a release archive (.tar.gz, .tgz or .zip) into destination.

    All member paths are checked before anything is written.

    Raises:
        UnsupportedArchiveFormat: If archive format is not recognized
        ArchiveExtractionError: If the archive is missing or corrupt
        InsecureArchiveError: If a member escapes the destination

    Example:
        >>> extract_archive('mdbook.tar.gz', '/tmp/mdbook')
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")

    name = archive_path.name.lower()
    extractor = next((fn for suffix, fn in _EXTRACTORS if name.endswith(suffix)), None)
    if extractor is None:
        raise UnsupportedArchiveFormat(
            f"Unsupported archive format: {archive_path.name} "
            "(expected .tar.gz, .tgz or .zip)"
        )

    destination.mkdir(parents=True, exist_ok=True)
    try:
        extractor(archive_path, destination)
    except InsecureArchiveError:
        raise
    except (OSError, EOFError, tarfile.TarError, zipfile.BadZipFile) as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}") from e


# ============================================================================
# Safe File Operations
# ============================================================================


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Replace a file's content in one rename.

    Readers see either the old content or the new one, never a partial write.
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    data = content.encode(encoding) if isinstance(content, str) else content
    fd, tmp_name = tempfile.mkstemp(dir=file_path.parent, prefix=f".{file_path.name}.")
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, file_path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def _clear_readonly(func, path, _exc_info):
    os.chmod(path, stat.S_IWRITE)
    func(path)


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Remove a directory tree, optionally only when it lies under a prefix.

    Read-only entries (git pack files in the cargo registry, for one) are
    made writable and removed. A symlink is removed itself, like ``rm -rf``
    does, and its target is left alone.

    Args:
        path: Directory to remove; a missing path is a no-op
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If path is not a directory or deletion fails
    """
    path = Path(path)
    is_link = path.is_symlink()
    # Resolve the parent only, so a link is checked where it lives
    path = path.parent.resolve() / path.name if is_link else path.resolve()

    if require_prefix is not None:
        prefix = Path(require_prefix).resolve()
        if not is_relative_to(path, prefix):
            raise ValueError(f"Refusing to delete '{path}': not under '{prefix}'")

    if is_link:
        try:
            path.unlink()
        except OSError as e:
            raise FilesystemError(f"Failed to remove link '{path}': {e}") from e
        return

    if not path.exists():
        return
    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        if sys.version_info >= (3, 12):
            shutil.rmtree(path, onexc=_clear_readonly)
        else:
            shutil.rmtree(path, onerror=_clear_readonly)
    except OSError as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


def copy_tree_contents(
    source: Union[str, Path],
    destination: Union[str, Path],
) -> int:
    """
    Copy the contents of ``source`` into ``destination``.

    Existing destination files with the same name are overwritten; entries
    only present in the destination are kept. Symlinks are copied as links.

    Args:
        source: Source directory
        destination: Destination directory (created if missing)

    Returns:
        Number of files and links copied

    Raises:
        FilesystemError: If source is not a directory or a copy fails
    """
    source = Path(source)
    destination = Path(destination)

    if not source.is_dir():
        raise FilesystemError(f"Source is not a directory: {source}")

    copied = 0
    try:
        destination.mkdir(parents=True, exist_ok=True)

        for root, dirnames, filenames in os.walk(source):
            root_path = Path(root)
            dest_root = destination / root_path.relative_to(source)

            for name in list(dirnames):
                item = root_path / name
                if item.is_symlink():
                    # os.walk does not descend into linked directories
                    _copy_symlink(item, dest_root / name)
                    copied += 1
                else:
                    (dest_root / name).mkdir(parents=True, exist_ok=True)

            for name in filenames:
                item = root_path / name
                if item.is_symlink():
                    _copy_symlink(item, dest_root / name)
                else:
                    _copy_file(item, dest_root / name)
                copied += 1
    except OSError as e:
        raise FilesystemError(
            f"Failed to copy '{source}' to '{destination}': {e}"
        ) from e

    return copied


def _copy_file(source: Path, target: Path) -> None:
    # Read-only targets (rustup ships some) must be replaced, not written over
    if target.is_symlink() or (target.exists() and not os.access(target, os.W_OK)):
        target.unlink()
    shutil.copy2(source, target)


def _copy_symlink(source: Path, target: Path) -> None:
    if target.is_symlink() or target.is_file():
        target.unlink()
    elif target.is_dir():
        shutil.rmtree(target)
    os.symlink(os.readlink(source), target)


def chown_tree(path: Union[str, Path], uid: int, gid: int) -> int:
    """
    Recursively set ownership of a tree, like ``chown -R uid:gid``.

    Entries that already have the requested owner are left untouched, so a
    non-root caller can run this over a tree it already owns.

    Returns:
        Number of entries whose ownership was changed

    Raises:
        FilesystemError: If an ownership change fails
    """
    path = Path(path)
    changed = 0

    def _fix(entry: Path) -> None:
        nonlocal changed
        st = entry.lstat()
        if st.st_uid != uid or st.st_gid != gid:
            os.chown(entry, uid, gid, follow_symlinks=False)
            changed += 1

    try:
        _fix(path)
        for root, dirnames, filenames in os.walk(path):
            for name in dirnames + filenames:
                _fix(Path(root) / name)
    except OSError as e:
        raise FilesystemError(f"Failed to change ownership of '{path}': {e}") from e

    return changed


def make_executable(path: Union[str, Path]) -> None:
    """Add execute permission bits, like ``chmod +x``."""
    path = Path(path)
    try:
        mode = path.stat().st_mode
        path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    except OSError as e:
        raise FilesystemError(f"Failed to make '{path}' executable: {e}") from e


# ============================================================================
# Temporary File/Directory Management
# ============================================================================


@contextmanager
def temporary_directory(prefix: str = "rustcache_"):
    """
    Context manager for temporary directory with automatic cleanup.

    The directory is removed on every exit path, including exceptions.

    Example:
        >>> with temporary_directory() as tmp:
        ...     (tmp / 'file.txt').write_text('test')
    """
    temp_dir = Path(tempfile.mkdtemp(prefix=prefix))

    try:
        yield temp_dir
    finally:
        if temp_dir.exists():
            safe_rmtree(temp_dir)


__all__ = [
    "FilesystemError",
    "ArchiveExtractionError",
    "UnsupportedArchiveFormat",
    "InsecureArchiveError",
    "is_relative_to",
    "ensure_directory",
    "extract_archive",
    "atomic_write",
    "safe_rmtree",
    "copy_tree_contents",
    "chown_tree",
    "make_executable",
    "temporary_directory",
]
