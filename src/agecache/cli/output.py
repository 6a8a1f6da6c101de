"""
Rich terminal output helpers for CLI.

Provides functions for printing entry tables, store statistics and
status messages using the Rich library.
"""

from typing import Any

from rich import box
from rich.console import Console
from rich.table import Table

from agecache.core.keys import KEY_SEPARATOR
from agecache.core.models import CacheEntry, CacheKey

# Console instance for all output
console = Console()


def format_age(age_ms: int) -> str:
    """Format a millisecond age as a short human-readable string."""
    if age_ms < 0:
        return "in the future"
    if age_ms < 1000:
        return f"{age_ms}ms"

    seconds = age_ms // 1000
    if seconds < 60:
        return f"{seconds}s"

    minutes, seconds = divmod(seconds, 60)
    if minutes < 60:
        return f"{minutes}m {seconds}s"

    hours, minutes = divmod(minutes, 60)
    if hours < 24:
        return f"{hours}h {minutes}m"

    days, hours = divmod(hours, 24)
    return f"{days}d {hours}h"


def print_entries_table(
    entries: dict[str, CacheEntry],
    now_ms: int,
    max_age_ms: int,
) -> None:
    """Print a table of cache entries with their age and freshness.

    Args:
        entries: Entries keyed by cache key.
        now_ms: Current time in milliseconds.
        max_age_ms: Max age used to classify entries as fresh or expired.
    """
    table = Table(
        title=f"Cache Entries (max age {format_age(max_age_ms)})",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold cyan",
    )

    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Namespace", style="dim")
    table.add_column("Age", justify="right")
    table.add_column("Status", justify="center")

    # Oldest first
    for key, entry in sorted(entries.items(), key=lambda item: item[1].written_at):
        namespace = key.partition(KEY_SEPARATOR)[0]
        if entry.is_expired(now_ms, max_age_ms):
            status = "[red]expired[/]"
        else:
            status = "[green]fresh[/]"
        table.add_row(key, namespace, format_age(entry.age(now_ms)), status)

    console.print()
    console.print(table)


def print_stats(stats: dict[str, Any], max_age_ms: int) -> None:
    """Print store statistics as returned by ``SQLiteStorage.stats``."""
    console.print("\n[bold cyan]Cache Statistics[/]")
    console.print(f"  Database: {stats['db_path']}")
    console.print(f"  Store: {stats['store_name']}")
    console.print(f"  Size: {stats['db_size_bytes'] / 1024:.1f} KB")
    console.print(f"  Total entries: {stats['total_entries']}")
    console.print(f"  Fresh entries: [green]{stats['fresh_entries']}[/]")
    console.print(
        f"  Expired entries: [red]{stats['expired_entries']}[/] "
        f"[dim](older than {format_age(max_age_ms)})[/]"
    )

    if stats["entries_by_namespace"]:
        console.print("\n  Entries by namespace:")
        for namespace, count in sorted(stats["entries_by_namespace"].items()):
            console.print(f"    {namespace}: {count}")


def print_namespaces() -> None:
    """Print the fixed key namespace."""
    table = Table(title="Key Namespace", box=box.ROUNDED, header_style="bold cyan")
    table.add_column("Name", style="cyan")
    table.add_column("Key")
    for member in CacheKey:
        table.add_row(member.name, member.value)
    console.print(table)


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]Warning:[/] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[cyan]Info:[/] {message}")
