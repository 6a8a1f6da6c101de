"""
Command-line interface for agecache.

Provides Click-based commands for inspecting and maintaining a cache store.
"""

from agecache.cli.main import cli

__all__ = ["cli"]
