"""Command line entry point for ytsearch."""

import json
import sys

import click
from rich.console import Console
from rich.table import Table

from .config import load_settings
from .errors import YouTubeSearchError
from .logging_config import configure_logging
from .services.youtube_search_service import YouTubeSearchService

console = Console()


@click.group()
@click.version_option(version="0.1.0")
def main():
    """ytsearch - scrape YouTube search results."""
    pass


@click.command()
@click.argument("query")
@click.option("--timeout", "timeout_seconds", type=float, default=None,
              help="Overall deadline in seconds; zero or negative disables it.")
@click.option("--limit", type=click.IntRange(min=1), default=None,
              help="Stop after this many videos.")
@click.option("--json", "as_json", is_flag=True, help="Print one JSON object per video.")
def search(query: str, timeout_seconds: float | None, limit: int | None, as_json: bool):
    """Search YouTube for QUERY and list the video results."""
    settings = load_settings()
    configure_logging(settings, stream=sys.stderr)
    service = YouTubeSearchService.from_settings(settings)

    try:
        records = service.search(query, timeout_seconds, limit=limit)
    except YouTubeSearchError as exc:
        console.print(f"[red]Search failed:[/red] {exc}")
        raise SystemExit(1) from exc

    if as_json:
        for record in records:
            click.echo(json.dumps(record.to_dict(), ensure_ascii=False))
        return

    if not records:
        console.print("[yellow]No videos found[/yellow]")
        return

    table = Table(title=f"Results for: {query}")
    table.add_column("Title", style="cyan")
    table.add_column("Channel")
    table.add_column("Duration", justify="right")
    table.add_column("Views", justify="right")
    table.add_column("Published")
    table.add_column("URL", style="blue")

    for record in records:
        table.add_row(
            record.title,
            record.channel,
            record.duration,
            record.views,
            record.publish_time,
            record.watch_url,
        )

    console.print(table)


main.add_command(search)


if __name__ == "__main__":
    main()
