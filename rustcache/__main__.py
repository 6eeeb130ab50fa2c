"""
Entry point for running rustcache as a module.

Usage: python -m rustcache [options]
"""

from rustcache.cli.parser import main

if __name__ == "__main__":
    main()
