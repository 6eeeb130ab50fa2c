"""
Entry point for running rustcache CLI as a module.

Usage: python -m rustcache.cli [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
