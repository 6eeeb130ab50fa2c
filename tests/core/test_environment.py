"""Tests for the subprocess environment overlay."""

import os
from unittest.mock import Mock, patch

import pytest

from rustcache.core.environment import RuntimeEnvironment
from rustcache.core.exceptions import CommandError


class TestRuntimeEnvironment:
    def test_defaults_to_process_environment_snapshot(self, monkeypatch):
        monkeypatch.setenv("RUST_LOG", "debug")

        env = RuntimeEnvironment()

        assert env.get("RUST_LOG") == "debug"

    def test_set_does_not_touch_os_environ(self, monkeypatch):
        monkeypatch.delenv("RUSTUP_DIST_SERVER", raising=False)
        env = RuntimeEnvironment()

        env.set("RUSTUP_DIST_SERVER", "https://rsproxy.cn")

        assert env.get("RUSTUP_DIST_SERVER") == "https://rsproxy.cn"
        assert "RUSTUP_DIST_SERVER" not in os.environ

    def test_overlay_wins_over_base(self):
        env = RuntimeEnvironment(base={"CARGO_HOME": "/old"})
        env.set("CARGO_HOME", "/new")

        assert env.as_dict()["CARGO_HOME"] == "/new"

    def test_prepend_path_order(self, tmp_path):
        env = RuntimeEnvironment(base={"PATH": "/usr/bin"})
        first = tmp_path / "cargo" / "bin"
        second = tmp_path / "cache" / "bin"

        env.prepend_path(first)
        env.prepend_path(second)
        env.prepend_path(second)

        assert env.path.split(os.pathsep) == [
            str(second.resolve()),
            str(first.resolve()),
            "/usr/bin",
        ]

    def test_path_without_base(self, tmp_path):
        env = RuntimeEnvironment(base={})
        env.prepend_path(tmp_path)

        assert env.path == str(tmp_path.resolve())


class TestRun:
    @patch("rustcache.core.environment.subprocess.run")
    def test_passes_merged_environment(self, mock_run, runtime_env):
        mock_run.return_value = Mock(returncode=0)
        runtime_env.set("RUSTUP_HOME", "/home/u/.rustup")

        runtime_env.run(["rustup", "--version"], step="get rustup version")

        _, kwargs = mock_run.call_args
        assert kwargs["env"]["RUSTUP_HOME"] == "/home/u/.rustup"
        assert kwargs["shell"] is False

    @patch("rustcache.core.environment.subprocess.run")
    def test_non_zero_exit_raises_named_error(self, mock_run, runtime_env):
        mock_run.return_value = Mock(returncode=3)

        with pytest.raises(CommandError) as exc_info:
            runtime_env.run(["cargo", "--version"], step="get cargo version")

        assert exc_info.value.returncode == 3
        assert "Failed to get cargo version" in str(exc_info.value)

    @patch("rustcache.core.environment.subprocess.run")
    def test_check_false_returns_result(self, mock_run, runtime_env):
        mock_run.return_value = Mock(returncode=7)

        result = runtime_env.run("exit 7", step="run", shell=True, check=False)

        assert result.returncode == 7

    @patch("rustcache.core.environment.subprocess.run")
    def test_missing_executable_raises_command_error(self, mock_run, runtime_env):
        mock_run.side_effect = FileNotFoundError("No such file: 'mdbook'")

        with pytest.raises(CommandError, match="get mdbook version"):
            runtime_env.run(["mdbook", "--version"], step="get mdbook version")

    def test_real_shell_command(self, tmp_path):
        env = RuntimeEnvironment()
        env.set("RUSTCACHE_TEST_VALUE", "42")
        out = tmp_path / "out.txt"

        if os.name == "nt":
            pytest.skip("POSIX shell syntax")
        env.run(f'echo "$RUSTCACHE_TEST_VALUE" > {out}', step="echo", shell=True)

        assert out.read_text().strip() == "42"
        assert "RUSTCACHE_TEST_VALUE" not in os.environ
