"""
Shared utilities for the CLI.

Console output helpers used by the setup command.
"""

import sys
from typing import Optional


def print_box(text: str, width: int = 25, char: str = "="):
    """
    Print a section header, e.g. '======== VERSION ========'.

    Flushed so it lands before output of the subprocesses that follow.
    """
    padding = max(width - len(text) - 2, 0)
    left = char * (padding // 2)
    right = char * (padding - padding // 2)
    print(f"{left} {text} {right}", flush=True)


def print_error(message: str, details: Optional[str] = None):
    """
    Print error message to stderr in consistent format.

    Args:
        message: Main error message
        details: Optional additional details
    """
    print(f"ERROR: {message}", file=sys.stderr)
    if details:
        print(f"  {details}", file=sys.stderr)


def print_warning(message: str):
    """Print warning message to stderr."""
    print(f"WARNING: {message}", file=sys.stderr)
