"""Tests for platform detection."""

from unittest.mock import patch

import pytest

from rustcache.core.platform import (
    PlatformInfo,
    clear_platform_cache,
    detect_platform,
    normalize_arch,
    normalize_os,
)


@pytest.fixture(autouse=True)
def fresh_detection():
    clear_platform_cache()
    yield
    clear_platform_cache()


@pytest.mark.parametrize(
    "system,expected",
    [("Linux", "linux"), ("Darwin", "macos"), ("Windows", "windows")],
)
def test_normalize_os(system, expected):
    assert normalize_os(system) == expected


def test_unknown_os_kept():
    assert normalize_os("FreeBSD") == "freebsd"


@pytest.mark.parametrize(
    "machine,expected",
    [
        ("x86_64", "x64"),
        ("AMD64", "x64"),
        ("aarch64", "arm64"),
        ("arm64", "arm64"),
        ("i686", "x86"),
        ("armv7l", "arm"),
        ("riscv64", "riscv64"),
    ],
)
def test_normalize_arch(machine, expected):
    assert normalize_arch(machine) == expected


def test_detect_platform():
    with patch("platform.system", return_value="Darwin"), patch(
        "platform.machine", return_value="arm64"
    ):
        info = detect_platform()

    assert info == PlatformInfo("macos", "arm64")
    assert str(info) == "macos-arm64"


def test_detection_is_cached():
    with patch("platform.system", return_value="Linux") as mock_system, patch(
        "platform.machine", return_value="x86_64"
    ):
        detect_platform()
        detect_platform()

    assert mock_system.call_count == 1
