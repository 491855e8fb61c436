# sitemapkit CLI - Config Commands
"""
sitemapkit CLI - config コマンド群
設定ファイルの生成・表示・検証
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.syntax import Syntax
from rich.panel import Panel
from rich.table import Table

from sitemapkit.cli.main import find_config, print_error, print_success, print_warning

console = Console()
config_app = typer.Typer(help="Configuration commands")


# デフォルト設定テンプレート
DEFAULT_CONFIG = """# sitemapkit Configuration File

# ======================================
# Basic Settings
# ======================================

# Public base URL of the site (paths are resolved against it)
base_url: https://example.com

# Output directory for static generation
output_path: ./public

# Index filename; shards are named sitemap-1.xml, sitemap-2.xml, ...
filename: sitemap.xml

# ======================================
# Generation
# ======================================

# Maximum number of URLs per shard (protocol limit: 50000)
max_entries_per_file: 50000

# Indent the XML output
pretty: false

# ======================================
# Live Serving
# ======================================

# Public path of the index
path: /sitemap.xml

# Cache-Control max-age in seconds (omit for no-cache)
# cache_seconds: 3600

# ======================================
# Change Log
# ======================================

# JSON Lines file used by `sitemapkit changes` and `generate --incremental`
change_log: .sitemap/changes.jsonl

# Record every entry as an 'add' change after a full generation
auto_track: false

# ======================================
# Redirects
# ======================================

# YAML/JSON list of {from, to, type} rules applied before generation
# strategy: remove_old_add_new | keep_relation | update_url | dual_mark
# redirects:
#   rules: redirects.yaml
#   strategy: remove_old_add_new
#   follow_chains: false
#   max_chain_length: 5

# ======================================
# Providers
# ======================================

# type: urls   -> text file, one URL or path per line
# type: jsonl  -> JSON Lines file, one entry object per line
# type: python -> "module:attr" resolving to a provider or a callable
providers:
  - type: urls
    path: urls.txt
"""


@config_app.command("init")
def config_init(
    output_path: Path = typer.Option(
        Path("./sitemapkit.yaml"),
        "--output", "-o",
        help="Output path for config file",
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite existing file"
    ),
):
    """Initialize a new configuration file"""

    if output_path.exists() and not force:
        print_warning(f"Config file already exists: {output_path}")
        console.print("Use --force to overwrite")
        raise typer.Exit(1)

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            f.write(DEFAULT_CONFIG)
    except OSError as e:
        print_error(f"Failed to create config file: {e}")
        raise typer.Exit(1)

    print_success(f"Configuration file created: {output_path}")
    console.print("\nEdit the file to customize your settings:")
    console.print(f"  [cyan]$EDITOR {output_path}[/cyan]")
    console.print("\nThen generate your sitemap:")
    console.print("  [cyan]sitemapkit generate[/cyan]")


@config_app.command("show")
def config_show(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file path"
    ),
):
    """Show current configuration"""

    config_path = find_config(config)
    if config_path is None:
        print_warning("No configuration file found")
        console.print("\nCreate one with:")
        console.print("  [cyan]sitemapkit config init[/cyan]")
        raise typer.Exit(1)

    try:
        with open(config_path, encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        print_error(f"Failed to read config file: {e}")
        raise typer.Exit(1)

    syntax = Syntax(content, "yaml", theme="monokai", line_numbers=True)
    console.print(Panel(
        syntax,
        title=str(config_path),
        border_style="cyan",
    ))


@config_app.command("validate")
def config_validate(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file path"
    ),
):
    """Validate configuration file"""

    config_path = config or Path("./sitemapkit.yaml")

    if not config_path.exists():
        print_error(f"Config file not found: {config_path}")
        raise typer.Exit(1)

    try:
        from sitemapkit.api import SitemapKit

        kit = SitemapKit.from_config(config_path)
        cfg = kit.config
    except Exception as e:
        print_error(f"Configuration error: {e}")
        raise typer.Exit(1)

    table = Table(title="Configuration Validation")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_column("Status")

    checks = [
        ("Base URL", cfg.base_url),
        ("Output Path", str(cfg.output_path)),
        ("Filename", cfg.filename),
        ("Max Entries / File", str(cfg.max_entries_per_file)),
        ("Path", cfg.path),
        ("Cache Seconds", str(cfg.cache_seconds) if cfg.cache_seconds else "no-cache"),
        ("Change Log", str(cfg.change_log) if cfg.change_log else "(memory)"),
        (
            "Redirects",
            f"{cfg.redirects.strategy} ({cfg.redirects.rules})" if cfg.redirects else "(none)",
        ),
        ("Providers", str(len(kit.providers))),
    ]

    for name, value in checks:
        table.add_row(name, value, "[green]✓[/green]")

    console.print(table)

    if not kit.providers:
        print_warning("No providers configured, the sitemap will be empty")
    print_success("Configuration is valid")
