"""
Main CLI entry point for agecache.

Provides commands for inspecting and maintaining a cache store on disk:
statistics, listing entries, reading and removing keys, and clearing or
purging expired entries.
"""

import asyncio
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from agecache import __version__
from agecache.cache import AgeBoundedCache
from agecache.cli.output import (
    format_age,
    print_entries_table,
    print_error,
    print_info,
    print_namespaces,
    print_stats,
    print_success,
    print_warning,
)
from agecache.core.config import CacheConfig
from agecache.core.exceptions import AgeCacheError
from agecache.core.models import MissReason

# Keeps "now - max age" inside SQLite's signed 64-bit INTEGER range
MAX_AGE_LIMIT = 2**62

MAX_AGE_OPTION = click.option(
    "--max-age",
    type=click.IntRange(min=0, max=MAX_AGE_LIMIT),
    help="Max age in milliseconds. Defaults to the configured max age.",
)


def run_async(coro):
    """Run an async coroutine to completion."""
    return asyncio.run(coro)


def _open_cache(ctx: click.Context) -> AgeBoundedCache:
    return AgeBoundedCache.from_config(ctx.obj["config"])


def _max_age(ctx: click.Context, max_age: Optional[int]) -> int:
    if max_age is None:
        return ctx.obj["config"].default_max_age_ms
    return max_age


@click.group()
@click.version_option(version=__version__, prog_name="agecache")
@click.option(
    "--dir", "db_dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="AGECACHE_DIR",
    help="Directory holding the cache database. Defaults to ~/.agecache",
)
@click.option("--name", envvar="AGECACHE_NAME", help="Application store name.")
@click.option("--store", envvar="AGECACHE_STORE", help="Cache sub-store (table) name.")
@click.option("--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(
    ctx: click.Context,
    db_dir: Optional[Path],
    name: Optional[str],
    store: Optional[str],
    verbose: bool,
) -> None:
    """agecache - inspect and maintain an age-bounded cache store.

    Entries are stamped with their write time and expire lazily: an entry
    older than the max age is deleted the next time it is read, or by an
    explicit cleanup.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    overrides = {
        field: value
        for field, value in (("db_dir", db_dir), ("name", name), ("store_name", store))
        if value is not None
    }
    try:
        config = dataclasses.replace(CacheConfig.from_env(), **overrides)
    except AgeCacheError as e:
        print_error(str(e))
        sys.exit(2)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command()
@MAX_AGE_OPTION
@click.pass_context
def stats(ctx: click.Context, max_age: Optional[int]) -> None:
    """Show cache store statistics.

    Entries older than the max age are counted as expired.
    """
    cache = _open_cache(ctx)
    max_age = _max_age(ctx, max_age)

    try:
        cache_stats = run_async(cache.storage.stats(cache.clock() - max_age))
    except AgeCacheError as e:
        print_error(f"Could not read statistics: {e}")
        sys.exit(1)

    print_stats(cache_stats, max_age)
    expired = cache_stats["expired_entries"]
    if expired:
        print_warning(
            f"{expired} expired entries are still on disk. "
            "Run 'agecache cleanup' to remove them."
        )


@cli.command(name="list")
@MAX_AGE_OPTION
@click.pass_context
def list_entries(ctx: click.Context, max_age: Optional[int]) -> None:
    """List cached entries with their age and freshness."""
    cache = _open_cache(ctx)
    max_age = _max_age(ctx, max_age)

    try:
        entries = run_async(cache.storage.entries())
    except AgeCacheError as e:
        print_error(f"Could not list entries: {e}")
        sys.exit(1)

    if not entries:
        print_info("Cache is empty.")
        return

    print_entries_table(entries, cache.clock(), max_age)


@cli.command()
@click.argument("key")
@MAX_AGE_OPTION
@click.pass_context
def get(ctx: click.Context, key: str, max_age: Optional[int]) -> None:
    """Print the cached value for KEY as JSON.

    Exits with status 1 on a miss. Reading an expired entry deletes it.

    \b
    Examples:
        agecache get listings
        agecache get userData:42 --max-age 60000
    """
    cache = _open_cache(ctx)

    try:
        result = run_async(cache.get(key, _max_age(ctx, max_age)))
    except AgeCacheError as e:
        print_error(str(e))
        sys.exit(1)

    if not result:
        if result.reason is MissReason.FAILURE:
            print_error(f"Could not read '{key}' from the cache store.")
        else:
            print_info(f"No cached value for '{key}' ({result.reason}).")
        sys.exit(1)

    click.echo(json.dumps(result.value, indent=2))


@cli.command()
@click.argument("key")
@click.pass_context
def remove(ctx: click.Context, key: str) -> None:
    """Remove the cached entry for KEY."""
    cache = _open_cache(ctx)

    try:
        removed = run_async(cache.remove(key))
    except AgeCacheError as e:
        print_error(str(e))
        sys.exit(1)

    if not removed:
        print_error(f"Could not remove '{key}'.")
        sys.exit(1)
    print_success(f"Removed '{key}'.")


@cli.command()
@click.pass_context
def clear(ctx: click.Context) -> None:
    """Clear all cached entries in the store."""
    cache = _open_cache(ctx)

    if not run_async(cache.clear()):
        print_error("Could not clear the cache store.")
        sys.exit(1)
    print_success("Cache cleared.")


@cli.command()
@MAX_AGE_OPTION
@click.pass_context
def cleanup(ctx: click.Context, max_age: Optional[int]) -> None:
    """Remove entries older than the max age.

    Expiry is otherwise only applied when an entry is read; this command
    is a one-off sweep for reclaiming disk space.
    """
    cache = _open_cache(ctx)
    max_age = _max_age(ctx, max_age)

    try:
        count = run_async(cache.storage.purge_older_than(cache.clock() - max_age))
    except AgeCacheError as e:
        print_error(f"Cleanup failed: {e}")
        sys.exit(1)

    print_success(
        f"Cleanup complete. Removed {count} entries older than {format_age(max_age)}."
    )


@cli.command()
def namespaces() -> None:
    """Show the fixed key namespace.

    Keys must be one of these values or derived from one, e.g.
    ``listings:42``.
    """
    print_namespaces()


if __name__ == "__main__":
    cli()
