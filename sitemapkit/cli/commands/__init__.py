# sitemapkit CLI Commands
"""
コマンドモジュールのエクスポート
"""

from sitemapkit.cli.commands.changes import changes_app
from sitemapkit.cli.commands.config_cmd import config_app

__all__ = [
    "changes_app",
    "config_app",
]
