"""In-memory Redirect Manager."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import yaml

from sitemapkit.core.types import RedirectRule
from sitemapkit.errors import ConfigurationError, ValidationError
from sitemapkit.redirect.base import RedirectManager

logger = logging.getLogger(__name__)

DEFAULT_MAX_RULES = 100000


class MemoryRedirectManager(RedirectManager):
    """インメモリのリダイレクト規則ストア

    ``max_rules`` を超えた場合は最も古い規則から破棄する。
    """

    def __init__(
        self,
        rules: Iterable[RedirectRule] = (),
        max_rules: int = DEFAULT_MAX_RULES,
    ) -> None:
        if max_rules < 1:
            raise ValidationError(
                "max_rules must be at least 1",
                field="max_rules",
                value=max_rules,
            )
        self.max_rules = max_rules
        self._rules: Dict[str, RedirectRule] = {}
        for rule in rules:
            self._store(rule)

    def __len__(self) -> int:
        return len(self._rules)

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        max_rules: int = DEFAULT_MAX_RULES,
    ) -> MemoryRedirectManager:
        """規則ファイルから作成"""
        manager = cls(load_redirect_rules(path), max_rules=max_rules)
        logger.info(f"Loaded {len(manager)} redirect rules from {path}")
        return manager

    async def register(self, rule: RedirectRule) -> None:
        self._store(rule)

    async def get(self, from_url: str) -> Optional[RedirectRule]:
        return self._rules.get(from_url)

    async def get_all(self) -> List[RedirectRule]:
        return list(self._rules.values())

    def _store(self, rule: RedirectRule) -> None:
        # 上書きは登録順の末尾へ移す
        self._rules.pop(rule.from_url, None)
        self._rules[rule.from_url] = rule
        if len(self._rules) > self.max_rules:
            oldest = next(iter(self._rules))
            del self._rules[oldest]
            logger.debug(f"Evicted redirect rule for {oldest}")


def load_redirect_rules(path: Union[str, Path]) -> List[RedirectRule]:
    """規則ファイルを読み込む

    YAML (.yaml/.yml) または JSON のリスト。各要素は ``from`` / ``to`` /
    ``type`` を持つ。``redirects:`` キーの下にリストを置いてもよい。

    Args:
        path: 規則ファイルのパス

    Returns:
        RedirectRule のリスト

    Raises:
        ConfigurationError: ファイルが無い、または形式が不正な場合
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Redirect rules file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Failed to parse redirect rules {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("redirects")
    if data is None:
        return []
    if not isinstance(data, list):
        raise ConfigurationError(f"Redirect rules in {path} must be a list")

    rules = []
    for position, item in enumerate(data, start=1):
        if not isinstance(item, dict):
            raise ConfigurationError(f"Redirect rule #{position} in {path} must be a mapping")
        try:
            rules.append(RedirectRule.from_dict(item))
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid redirect rule #{position} in {path}: {e.message}"
            ) from e
    return rules
