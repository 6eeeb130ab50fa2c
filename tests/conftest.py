"""
Pytest configuration and shared fixtures for rustcache tests.
"""

import io
import tarfile
from pathlib import Path
from unittest.mock import Mock

import pytest

from rustcache.config.settings import SetupConfig
from rustcache.core.environment import RuntimeEnvironment
from rustcache.core.platform import PlatformInfo


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def home_dir(tmp_path: Path) -> Path:
    """Empty home directory standing in for the user's home."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def setup_config(tmp_path: Path, home_dir: Path) -> SetupConfig:
    """SetupConfig with cache and home inside tmp_path."""
    return SetupConfig(
        toolchain="stable",
        profile="minimal",
        cache_dir=tmp_path / "cache",
        home_dir=home_dir,
        lock_timeout=5,
    )


@pytest.fixture
def runtime_env() -> RuntimeEnvironment:
    """Environment overlay with an empty base so no real tools are resolved."""
    return RuntimeEnvironment(base={"PATH": ""})


@pytest.fixture
def linux_x64() -> PlatformInfo:
    return PlatformInfo("linux", "x64")


class FakeRustup:
    """
    Stand-in for subprocess.run that simulates rustup commands.

    rustup-init creates CARGO_HOME and RUSTUP_HOME with a few files, other
    commands succeed without side effects. Every call is recorded.
    """

    def __init__(self, returncode: int = 0, create_homes: bool = True):
        self.returncode = returncode
        self.create_homes = create_homes
        self.calls = []

    def __call__(self, args, env=None, shell=False, cwd=None, **kwargs):
        self.calls.append((args, env, shell))
        if not shell and "--default-toolchain" in args and self.create_homes:
            cargo_home = Path(env["CARGO_HOME"])
            rustup_home = Path(env["RUSTUP_HOME"])
            (cargo_home / "bin").mkdir(parents=True, exist_ok=True)
            (cargo_home / "bin" / "cargo").write_text("cargo")
            (cargo_home / "bin" / "rustup").write_text("rustup")
            (cargo_home / "env").write_text('export PATH="$HOME/.cargo/bin:$PATH"')
            toolchain = args[args.index("--default-toolchain") + 1]
            (rustup_home / "toolchains" / toolchain).mkdir(parents=True, exist_ok=True)
            (rustup_home / "settings.toml").write_text(
                f'default_toolchain = "{toolchain}"'
            )
        return Mock(returncode=self.returncode)

    def commands(self):
        """Argument lists of non-shell calls, without the executable path."""
        return [list(args[1:]) for args, _, shell in self.calls if not shell]

    def installer_calls(self):
        return [c for c in self.commands() if "--default-toolchain" in c]


@pytest.fixture
def fake_rustup() -> FakeRustup:
    return FakeRustup()


def make_tool_archive(path: Path, members: dict) -> Path:
    """Write a .tar.gz archive holding ``members`` (name -> bytes)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(path, "w:gz") as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
    return path


@pytest.fixture
def tool_archive():
    """Factory fixture: tool_archive(path, {name: bytes}) -> path."""
    return make_tool_archive


@pytest.fixture
def make_fake_rustup():
    """Factory fixture for FakeRustup with custom exit code or behavior."""
    return FakeRustup
