"""
CLI command implementations.

Each command module exposes ``run(args) -> int``.
"""
