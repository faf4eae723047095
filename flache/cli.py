"""CLI interface for flache."""

import asyncio
import json
import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from flache.consts import DEFAULT_CACHE_PATH, DEFAULT_CHUNK_SIZE
from flache.errors import FlacheError
from flache.models.model_config import CacheOptions
from flache.storage.cache.codecs import TEXT_CODEC
from flache.storage.cache.sharded_cache import ShardedCache, key_to_path
from flache.storage.tree.directory_tree import DirectoryTree

app = typer.Typer(
    name="flache",
    help="flache - persistent, content-addressed key-value cache",
)

console = Console()


class _State:
    root: Path = Path(DEFAULT_CACHE_PATH)


state = _State()


@app.callback()
def main(
    root: Path = typer.Option(
        Path(DEFAULT_CACHE_PATH), "--root", "-r", help="Cache root directory"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Inspect and edit a flache cache directory."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    state.root = root


def _open_cache(raw: bool) -> ShardedCache:
    if raw:
        return ShardedCache(TEXT_CODEC.options(path=str(state.root)))
    return ShardedCache(CacheOptions(path=str(state.root)))


@app.command()
def path(key: str = typer.Argument(..., help="Cache key")) -> None:
    """Print the shard path a key is stored at."""
    console.print(key_to_path(key))


@app.command()
def get(
    key: str = typer.Argument(..., help="Cache key"),
    raw: bool = typer.Option(False, "--raw", help="Print the stored text as-is"),
) -> None:
    """Print the value stored under a key."""
    try:
        value = asyncio.run(_open_cache(raw).get(key))
    except FlacheError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if value is None:
        console.print(f"[yellow]No entry for '{key}'[/yellow]")
        raise typer.Exit(1)

    if raw:
        console.print(value, markup=False, highlight=False)
    else:
        console.print_json(json.dumps(value))


@app.command("set")
def set_(
    key: str = typer.Argument(..., help="Cache key"),
    value: str = typer.Argument(..., help="Value (JSON unless --raw)"),
    raw: bool = typer.Option(False, "--raw", help="Store the value as plain text"),
) -> None:
    """Store a value under a key."""
    if raw:
        parsed = value
    else:
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError as e:
            console.print(f"[red]Error:[/red] Value is not valid JSON ({e}). Use --raw for text.")
            raise typer.Exit(1)

    try:
        asyncio.run(_open_cache(raw).set(key, parsed))
    except FlacheError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]Stored '{key}' at {key_to_path(key)}[/green]")


@app.command()
def delete(key: str = typer.Argument(..., help="Cache key")) -> None:
    """Delete the entry stored under a key (no error if absent)."""
    try:
        asyncio.run(_open_cache(raw=False).delete(key))
    except FlacheError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]Deleted '{key}'[/green]")


@app.command()
def cat(
    file_path: str = typer.Argument(..., help="Path relative to the cache root"),
    start: int = typer.Option(None, "--start", help="First byte offset"),
    end: int = typer.Option(None, "--end", help="Offset to stop before"),
    chunk_size: int = typer.Option(DEFAULT_CHUNK_SIZE, "--chunk-size", help="Bytes per read"),
) -> None:
    """Stream a byte range of a stored file to stdout."""

    async def run() -> int:
        tree = DirectoryTree(state.root)
        if not await tree.exists(file_path):
            console.print(f"[red]Error:[/red] No such file '{file_path}'")
            return 1
        async with await tree.open_file(file_path) as handle:
            view = handle.slice(start, end)
            async with view.stream(chunk_size=chunk_size) as stream:
                async for chunk in stream:
                    sys.stdout.buffer.write(chunk)
        sys.stdout.buffer.flush()
        return 0

    try:
        code = asyncio.run(run())
    except (FlacheError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if code:
        raise typer.Exit(code)


@app.command()
def stats() -> None:
    """Show how many entries the cache holds."""
    try:
        tree_stats = asyncio.run(DirectoryTree(state.root).stats())
    except FlacheError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title="Cache Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="magenta")
    table.add_row("Root", tree_stats.root)
    table.add_row("Entries", str(tree_stats.entries))
    table.add_row("Total bytes", f"{tree_stats.total_bytes:,}")
    table.add_row("Shard directories", str(tree_stats.shard_dirs))
    console.print(table)


if __name__ == "__main__":
    app()
