"""Click CLI for rendercache — inspect size buckets and manage the persistent cache."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from rendercache.config.hierarchy import load_config_hierarchy

if TYPE_CHECKING:
    from rendercache.cache.disk import DiskCache

console = Console()
error_console = Console(stderr=True)


def _setup_logging(verbosity: int) -> None:
    """Configure logging based on verbosity level."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_time=False, show_path=False)],
    )


def _open_disk_cache(db: str | None) -> DiskCache:
    from rendercache.cache.disk import DiskCache
    from rendercache.config.schema import CacheConfig
    from rendercache.errors.exceptions import CacheUnavailableError

    config = CacheConfig.from_flat(load_config_hierarchy(disk_path=db))
    try:
        return DiskCache(db_path=config.disk_path, max_size_mb=config.disk_max_mb)
    except CacheUnavailableError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


@click.group()
@click.version_option(package_name="rendercache")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug).")
def cli(verbose: int) -> None:
    """rendercache — memoize expensive renders by fingerprint and size."""
    _setup_logging(verbose)


@cli.command()
@click.argument("width", type=float)
@click.argument("height", type=float)
@click.option("--base-width", type=float, default=None, help="Grid origin for widths.")
@click.option("--base-height", type=float, default=None, help="Grid origin for heights.")
@click.option("--growth-rate", type=float, default=None, help="Ratio between grid steps.")
def bucket(
    width: float,
    height: float,
    base_width: float | None,
    base_height: float | None,
    growth_rate: float | None,
) -> None:
    """Show the size bucket a requested WIDTH x HEIGHT renders at."""
    from rendercache.cache.sizing import SizingPolicy
    from rendercache.config.schema import CacheConfig
    from rendercache.errors.exceptions import InvalidSizeError

    try:
        config = CacheConfig.from_flat(
            load_config_hierarchy(
                base_width=base_width, base_height=base_height, growth_rate=growth_rate
            )
        )
        sizing = config.sizing
        policy = SizingPolicy(sizing.base_width, sizing.base_height, sizing.growth_rate)
        result = policy.bucket(width, height)
    except (InvalidSizeError, ValueError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print(f"{width:g}x{height:g} -> [cyan]{result.width}x{result.height}[/cyan]")


@cli.group()
def cache() -> None:
    """Persistent cache management commands."""


@cache.command("stats")
@click.option("--db", type=click.Path(dir_okay=False), default=None, help="SQLite cache file.")
def cache_stats(db: str | None) -> None:
    """Show persistent cache statistics."""
    disk = _open_disk_cache(db)

    table = Table(title="Cache Statistics", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")

    table.add_row("Path", str(disk.db_path))
    table.add_row("Entries", str(disk.entry_count))
    table.add_row("Size (MB)", f"{disk.size_mb:.1f}")

    console.print(table)
    disk.close()


@cache.command("clear")
@click.option("--db", type=click.Path(dir_okay=False), default=None, help="SQLite cache file.")
@click.confirmation_option(prompt="Are you sure you want to clear the cache?")
def cache_clear(db: str | None) -> None:
    """Clear all cached renders."""
    disk = _open_disk_cache(db)
    disk.clear()
    disk.close()
    console.print("[green]Cache cleared.[/green]")


@cache.command("invalidate")
@click.option("--db", type=click.Path(dir_okay=False), default=None, help="SQLite cache file.")
@click.option("--namespace", type=str, default=None, help="Only entries of this render output.")
@click.option("--pattern", type=str, default=None, help="Glob over the canonical fingerprint.")
def cache_invalidate(db: str | None, namespace: str | None, pattern: str | None) -> None:
    """Remove entries matching a namespace and/or fingerprint pattern."""
    if namespace is None and pattern is None:
        error_console.print("[red]Error:[/red] give --namespace and/or --pattern (use 'clear' for all)")
        sys.exit(2)
    disk = _open_disk_cache(db)
    count = disk.invalidate(namespace=namespace, pattern=pattern)
    disk.close()
    console.print(f"[green]Invalidated {count} entries.[/green]")


def main() -> None:
    """Entry point for the CLI."""
    cli()
