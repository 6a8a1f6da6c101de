"""
CLI entry point for running agecache as a module.

Usage: python -m agecache [OPTIONS] COMMAND [ARGS]...
"""

from agecache.cli.main import cli

if __name__ == "__main__":
    cli()
