"""
Tests for CLI argument parser.
"""

import pytest

from rustcache.cli.parser import CLI


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_creation(self):
        cli = CLI()
        assert cli.parser is not None

    def test_version_flag(self, capsys):
        """Test --version flag."""
        with pytest.raises(SystemExit) as exc_info:
            CLI().run(["--version"])

        assert exc_info.value.code == 0
        assert "rustcache" in capsys.readouterr().out

    def test_unknown_argument_is_usage_error(self, capsys):
        """Unknown options exit with argparse's usage error code."""
        with pytest.raises(SystemExit) as exc_info:
            CLI().run(["--install-sccache", "0.8.0"])

        assert exc_info.value.code == 2
        assert "unrecognized arguments" in capsys.readouterr().err


class TestSetupOptions:
    """Options left unset must stay None so lower layers can fill them."""

    def test_defaults_unset(self):
        args = CLI().parse_args([])

        assert args.config is None
        assert args.rust_toolchain is None
        assert args.rust_profile is None
        assert args.enable_proxy is None
        assert args.install_mdbook is None
        assert args.cache_dir is None
        assert args.clear_cache is None
        assert args.lock_timeout is None
        assert args.execute_command is None
        assert args.verbose is False
        assert args.quiet is False

    def test_all_options(self, tmp_path):
        args = CLI().parse_args(
            [
                "--config",
                str(tmp_path / "rustcache.yaml"),
                "--rust-toolchain",
                "stable",
                "--rust-profile",
                "default",
                "--enable-proxy",
                "--install-mdbook",
                "0.4.40",
                "--cache-dir",
                "/ci/cache",
                "--clear-cache",
                "--lock-timeout",
                "30",
                "--execute-command",
                "cargo build --release",
            ]
        )

        assert args.config == tmp_path / "rustcache.yaml"
        assert args.rust_toolchain == "stable"
        assert args.rust_profile == "default"
        assert args.enable_proxy is True
        assert args.install_mdbook == "0.4.40"
        assert args.cache_dir == "/ci/cache"
        assert args.clear_cache is True
        assert args.lock_timeout == 30.0
        assert args.execute_command == "cargo build --release"

    def test_empty_mdbook_version(self):
        args = CLI().parse_args(["--install-mdbook", ""])

        assert args.install_mdbook == ""

    def test_invalid_lock_timeout(self):
        with pytest.raises(SystemExit) as exc_info:
            CLI().parse_args(["--lock-timeout", "soon"])

        assert exc_info.value.code == 2
