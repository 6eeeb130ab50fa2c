"""
rustcache CLI argument parser.

This module implements the command-line interface for rustcache using argparse.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Get version from package
try:
    from importlib.metadata import version

    __version__ = version("rustcache")
except Exception:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)


class CLI:
    """rustcache command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser.

        Options that can also come from the environment or a config file
        default to None so that unset options fall through to those layers.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="rustcache",
            description="Provision a cached Rust toolchain, then run a command",
            epilog=(
                "Defaults can also be set with SETUP_RUST_TOOLCHAIN, "
                "SETUP_RUST_PROFILE, SETUP_MDBOOK and CACHE_DIR"
            ),
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"rustcache {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to YAML configuration file",
        )

        # Toolchain
        parser.add_argument(
            "--rust-toolchain",
            metavar="NAME",
            help="Rust toolchain to install (default: nightly)",
        )
        parser.add_argument(
            "--rust-profile",
            metavar="NAME",
            help="rustup profile: minimal, default or complete (default: minimal)",
        )
        parser.add_argument(
            "--enable-proxy",
            action="store_true",
            default=None,
            help="Use rsproxy mirrors and the GitHub download proxy",
        )

        # Auxiliary tools
        parser.add_argument(
            "--install-mdbook",
            metavar="VERSION",
            help="Install mdBook at VERSION (empty disables)",
        )

        # Cache
        parser.add_argument(
            "--cache-dir",
            metavar="PATH",
            help="Cache directory (default: .cache)",
        )
        parser.add_argument(
            "--clear-cache",
            action="store_true",
            default=None,
            help="Delete the cache directory before use",
        )
        parser.add_argument(
            "--lock-timeout",
            type=float,
            metavar="SECONDS",
            help="Maximum wait for the cache lock (default: 600)",
        )

        # Custom command
        parser.add_argument(
            "--execute-command",
            metavar="CMD",
            help="Shell command to run after setup, then write toolchain state back",
        )

        return parser

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        parsed_args = self.parse_args(args)

        self._configure_logging(parsed_args)

        try:
            from rustcache.cli.commands import setup

            return setup.run(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except Exception as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return 1

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,  # Reconfigure if already configured
        )


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
