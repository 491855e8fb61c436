# sitemapkit CLI - Changes Commands
"""
sitemapkit CLI - changes コマンド群
変更ログの記録・一覧・削除
"""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from sitemapkit.cli.main import OutputFormat, get_kit, print_error, print_success, print_warning

console = Console()
changes_app = typer.Typer(help="Change log commands")


def get_change_tracker(config: Optional[Path]):
    """設定ファイルの change_log から変更ログを取得"""
    from sitemapkit.errors import ConfigurationError

    kit = get_kit(config)
    if kit.config.change_log is None:
        raise ConfigurationError("change_log is not configured in the config file")
    return kit.change_tracker


@changes_app.command("list")
def changes_list(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file path"
    ),
    since: Optional[str] = typer.Option(
        None, "--since", help="Only show changes at or after this ISO 8601 timestamp"
    ),
    url: Optional[str] = typer.Option(
        None, "--url", "-u", help="Only show changes for this URL"
    ),
    output: OutputFormat = typer.Option(
        OutputFormat.text, "--output", "-o", help="Output format"
    ),
):
    """List recorded changes"""
    from sitemapkit.core.types import parse_timestamp

    try:
        tracker = get_change_tracker(config)
        if url:
            changes = asyncio.run(tracker.get_changes_by_url(url))
        else:
            since_dt = parse_timestamp(since) if since else None
            changes = asyncio.run(tracker.get_changes(since_dt))
    except Exception as e:
        print_error(f"Failed to read change log: {e}")
        raise typer.Exit(1)

    if output == OutputFormat.json:
        console.print_json(json.dumps([c.to_dict() for c in changes]))
        return

    if not changes:
        print_warning("No changes recorded")
        return

    table = Table(title=f"Changes ({len(changes)})")
    table.add_column("Timestamp", style="dim")
    table.add_column("Type")
    table.add_column("URL", style="cyan")

    colors = {"add": "green", "update": "yellow", "remove": "red"}
    for change in changes:
        kind = change.change_type.value
        table.add_row(
            change.timestamp.isoformat(),
            f"[{colors[kind]}]{kind}[/{colors[kind]}]",
            change.url,
        )

    console.print(table)


@changes_app.command("track")
def changes_track(
    change_type: str = typer.Argument(..., help="Change type: add, update, remove"),
    url: str = typer.Argument(..., help="URL or path of the changed page"),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file path"
    ),
    lastmod: Optional[str] = typer.Option(
        None, "--lastmod", help="Last modified timestamp of the page"
    ),
    changefreq: Optional[str] = typer.Option(
        None, "--changefreq", help="Change frequency (daily, weekly, ...)"
    ),
    priority: Optional[float] = typer.Option(
        None, "--priority", help="Priority (0.0-1.0)"
    ),
):
    """Record a change in the change log

    Examples:
        sitemapkit changes track add /blog/new-post --lastmod 2024-01-15
        sitemapkit changes track remove /old-page
    """
    from sitemapkit.core.types import ChangeType, SitemapChange, SitemapEntry

    try:
        kind = ChangeType(change_type.lower())
    except ValueError:
        print_error(f"Invalid change type: {change_type}")
        console.print("Valid types: add, update, remove")
        raise typer.Exit(1)

    try:
        entry = None
        if kind != ChangeType.REMOVE:
            entry = SitemapEntry(
                url=url,
                last_modified=lastmod,
                change_frequency=changefreq,
                priority=priority,
            )
        change = SitemapChange(change_type=kind, url=url, entry=entry)

        tracker = get_change_tracker(config)
        asyncio.run(tracker.track(change))
    except Exception as e:
        print_error(f"Failed to track change: {e}")
        raise typer.Exit(1)

    print_success(f"Tracked {kind.value} {url}")


@changes_app.command("clear")
def changes_clear(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file path"
    ),
    since: Optional[str] = typer.Option(
        None, "--since", help="Only clear changes at or after this ISO 8601 timestamp"
    ),
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Skip confirmation"
    ),
):
    """Clear the change log"""
    from sitemapkit.core.types import parse_timestamp

    if not yes:
        scope = f"changes since {since}" if since else "all changes"
        if not typer.confirm(f"Clear {scope}?"):
            console.print("Cancelled")
            raise typer.Exit(0)

    try:
        tracker = get_change_tracker(config)
        since_dt = parse_timestamp(since) if since else None
        asyncio.run(tracker.clear(since_dt))
    except Exception as e:
        print_error(f"Failed to clear change log: {e}")
        raise typer.Exit(1)

    print_success("Change log cleared")
