# sitemapkit CLI - Main Application
"""
sitemapkit CLI
メインアプリケーション構造
"""

import asyncio
import json
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# === アプリケーション初期化 ===

app = typer.Typer(
    name="sitemapkit",
    help="sitemapkit - Sharded sitemap generator with incremental change tracking",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

CONFIG_SEARCH_PATHS = [
    Path("./sitemapkit.yaml"),
    Path("./sitemapkit.yml"),
    Path("./config/sitemapkit.yaml"),
]


# === 出力フォーマット ===

class OutputFormat(str, Enum):
    """出力フォーマット"""
    text = "text"
    json = "json"


# === ユーティリティ関数 ===

def find_config(config_path: Optional[Path] = None) -> Optional[Path]:
    """設定ファイルを探索"""
    for path in [config_path, *CONFIG_SEARCH_PATHS]:
        if path and path.exists():
            return path
    return None


def get_kit(config_path: Optional[Path] = None):
    """SitemapKitインスタンスを取得

    Args:
        config_path: 設定ファイルパス（Noneの場合は探索）

    Returns:
        SitemapKit: static モードのインスタンス
    """
    from sitemapkit.api import SitemapKit
    from sitemapkit.errors import ConfigurationError

    path = find_config(config_path)
    if path is None:
        raise ConfigurationError(
            "No configuration file found (run 'sitemapkit init' to create one)"
        )
    return SitemapKit.from_config(path)


def print_error(message: str):
    """エラーメッセージを表示"""
    console.print(f"[red]✗ Error:[/red] {message}")


def print_success(message: str):
    """成功メッセージを表示"""
    console.print(f"[green]✓[/green] {message}")


def print_warning(message: str):
    """警告メッセージを表示"""
    console.print(f"[yellow]⚠[/yellow] {message}")


# === グローバルオプション ===

@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging"
    ),
):
    """sitemapkit - Sharded sitemap generator"""
    from sitemapkit.observability import LogLevel, ObservabilityConfig, configure_logging

    configure_logging(ObservabilityConfig(
        log_level=LogLevel.DEBUG if verbose else LogLevel.WARNING,
    ))


# === バージョンコマンド ===

@app.command()
def version():
    """Show version information"""
    from sitemapkit import __version__

    console.print(Panel.fit(
        f"[bold cyan]sitemapkit[/bold cyan] v{__version__}\n"
        "[dim]Sharded sitemap generator with incremental change tracking[/dim]",
        border_style="cyan"
    ))


# === initコマンド ===

@app.command()
def init(
    path: Path = typer.Argument(
        Path("."),
        help="Project directory to initialize",
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite existing files"
    ),
):
    """Initialize a new sitemapkit project

    Creates the following structure:
    - sitemapkit.yaml (configuration file)
    - urls.txt (sample URL list provider)
    - public/ (sitemap output directory)
    """
    from sitemapkit.cli.commands.config_cmd import DEFAULT_CONFIG

    project_path = path.resolve()
    config_file = project_path / "sitemapkit.yaml"
    urls_file = project_path / "urls.txt"
    output_dir = project_path / "public"

    # 既存チェック
    if config_file.exists() and not force:
        print_warning(f"Project already initialized: {config_file}")
        console.print("Use --force to reinitialize")
        raise typer.Exit(1)

    try:
        project_path.mkdir(parents=True, exist_ok=True)
        output_dir.mkdir(exist_ok=True)

        with open(config_file, "w", encoding="utf-8") as f:
            f.write(DEFAULT_CONFIG)

        if not urls_file.exists():
            with open(urls_file, "w", encoding="utf-8") as f:
                f.write("# One URL or path per line\n/\n/about\n")

    except OSError as e:
        print_error(f"Failed to initialize project: {e}")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[green]✓ sitemapkit project initialized![/green]\n\n"
        f"[bold]Created:[/bold]\n"
        f"  📄 {config_file.name}\n"
        f"  📄 {urls_file.name}\n"
        f"  📁 {output_dir.name}/\n\n"
        f"[bold]Next steps:[/bold]\n"
        f"  1. Set [cyan]base_url[/cyan] in [cyan]sitemapkit.yaml[/cyan]\n"
        f"  2. Add URLs to [cyan]urls.txt[/cyan]\n"
        f"  3. Generate: [cyan]sitemapkit generate[/cyan]",
        title="Project Initialized",
        border_style="green"
    ))


# === generateコマンド ===

@app.command()
def generate(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file path"
    ),
    incremental: bool = typer.Option(
        False, "--incremental", "-i", help="Regenerate only if the change log has new changes"
    ),
    since: Optional[str] = typer.Option(
        None, "--since", help="Only consider changes at or after this ISO 8601 timestamp"
    ),
    output: OutputFormat = typer.Option(
        OutputFormat.text, "--output", "-o", help="Output format"
    ),
):
    """Generate sitemap shards and the sitemap index

    Examples:
        sitemapkit generate
        sitemapkit generate --incremental --since 2024-01-15T00:00:00Z
    """
    from sitemapkit.core.types import parse_timestamp

    try:
        kit = get_kit(config)
        coordinator = kit.incremental()

        with console.status("[bold green]Generating sitemap...", spinner="dots"):
            if incremental:
                since_dt = parse_timestamp(since) if since else None
                inc_result = asyncio.run(coordinator.generate_incremental(since_dt))
                result = inc_result.generation if inc_result else None
            else:
                inc_result = None
                result = asyncio.run(coordinator.generate_full())

    except Exception as e:
        print_error(f"Generation failed: {e}")
        raise typer.Exit(1)

    if result is None:
        if output == OutputFormat.json:
            console.print_json(json.dumps({"skipped": True, "reason": "no changes"}))
        else:
            print_warning("No changes in the change log, nothing to regenerate")
        return

    if output == OutputFormat.json:
        data = result.to_dict()
        if inc_result is not None:
            data["diff"] = inc_result.diff.to_dict()["summary"]
        console.print_json(json.dumps(data))
        return

    table = Table(title="Sitemap Generation")
    table.add_column("File", style="cyan")
    table.add_column("URL")
    for filename in [*result.shard_filenames, result.index_filename]:
        table.add_row(filename, kit.storage.get_url(filename))
    console.print(table)

    if inc_result is not None:
        diff = inc_result.diff
        console.print(
            f"Changes: [green]+{len(diff.added)}[/green] "
            f"[yellow]~{len(diff.updated)}[/yellow] "
            f"[red]-{len(diff.removed)}[/red]"
        )

    print_success(
        f"Generated {result.entry_count} entries in {result.shard_count} shards "
        f"({result.duration_ms:.0f}ms)"
    )


# === diffコマンド ===

@app.command()
def diff(
    old: Path = typer.Argument(..., help="JSON Lines file with the previous entries"),
    new: Path = typer.Argument(..., help="JSON Lines file with the current entries"),
    output: OutputFormat = typer.Option(
        OutputFormat.text, "--output", "-o", help="Output format"
    ),
):
    """Compare two entry files and show added, updated and removed URLs"""
    from sitemapkit.core.diff import DiffCalculator
    from sitemapkit.core.providers import JsonLinesProvider

    try:
        result = DiffCalculator().calculate(
            JsonLinesProvider(old).get_entries(),
            JsonLinesProvider(new).get_entries(),
        )
    except Exception as e:
        print_error(f"Diff failed: {e}")
        raise typer.Exit(1)

    if output == OutputFormat.json:
        console.print_json(json.dumps(result.to_dict()))
        return

    if result.is_empty:
        print_success("No differences")
        return

    table = Table(title=f"Diff: {old.name} → {new.name}")
    table.add_column("Change")
    table.add_column("URL", style="cyan")
    for entry in result.added:
        table.add_row("[green]added[/green]", entry.url)
    for entry in result.updated:
        table.add_row("[yellow]updated[/yellow]", entry.url)
    for url in result.removed:
        table.add_row("[red]removed[/red]", url)
    console.print(table)
    console.print(f"\n[dim]Total changes: {result.total_changes}[/dim]")


# === サブコマンドのアタッチ ===

def attach_commands():
    """サブコマンドをアタッチ"""
    from sitemapkit.cli.commands import changes_app, config_app

    app.add_typer(changes_app, name="changes")
    app.add_typer(config_app, name="config")


attach_commands()
