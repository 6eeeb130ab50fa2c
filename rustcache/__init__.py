"""
rustcache - cached Rust toolchain provisioning for CI jobs.

Installs rustup (or restores it from a cache directory), installs pinned
auxiliary tools such as mdBook, runs a command and writes the updated
toolchain state back to the cache.
"""

__version__ = "0.1.0"
