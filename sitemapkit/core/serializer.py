"""Sitemap Document Serializers.

シャード (urlset) とインデックス (sitemapindex) の XML 文書を生成する。
どちらも蓄積したエントリに対する純粋な変換で、I/O は行わない。
"""

from __future__ import annotations

import re
from typing import Iterable, List, Set, Union
from xml.sax.saxutils import escape

from sitemapkit.core.types import (
    EntryLike,
    SitemapEntry,
    SitemapIndexEntry,
    coerce_entry,
    to_date_string,
    to_iso_string,
)
from sitemapkit.errors import ValidationError


XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
IMAGE_NS = "http://www.google.com/schemas/sitemap-image/1.1"
VIDEO_NS = "http://www.google.com/schemas/sitemap-video/1.1"
NEWS_NS = "http://www.google.com/schemas/sitemap-news/0.9"
XHTML_NS = "http://www.w3.org/1999/xhtml"

# プレフィックス -> 名前空間（宣言順）
EXTENSION_NAMESPACES = {
    "image": IMAGE_NS,
    "video": VIDEO_NS,
    "news": NEWS_NS,
    "xhtml": XHTML_NS,
}

_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")

_QUOTE_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def escape_xml(value: object) -> str:
    """XML エンティティをエスケープ

    ``& < >`` に加えて属性値用に引用符も置換する。
    """
    return escape(str(value), _QUOTE_ENTITIES)


def normalize_base_url(base_url: str) -> str:
    """ベースURL末尾のスラッシュを1つだけ除去"""
    if base_url.endswith("/"):
        return base_url[:-1]
    return base_url


def resolve_url(base_url: str, url: str) -> str:
    """URLを絶対URLに解決

    スキームで始まらない値はパスとみなし、ベースURLに連結する。

    Args:
        base_url: 正規化済みベースURL
        url: URL またはパス

    Returns:
        絶対URL
    """
    if _SCHEME_PATTERN.match(url):
        return url
    if not url.startswith("/"):
        url = f"/{url}"
    return f"{base_url}{url}"


class _XMLLayout:
    """インデント・改行の設定（pretty フラグ）"""

    def __init__(self, pretty: bool) -> None:
        self.indent = "  " if pretty else ""
        self.sub_indent = "    " if pretty else ""
        self.nl = "\n" if pretty else ""


class SitemapStream:
    """シャード文書シリアライザ

    エントリを蓄積し、1つの ``<urlset>`` 文書を生成する。
    巨大なシャード向けに ``start()`` / ``render_entry()`` / ``end()`` の
    ストリーミング API も提供する。

    Example:
        >>> stream = SitemapStream(base_url="https://example.com")
        >>> stream.add("/about").add(SitemapEntry(url="/blog", priority=0.8))
        >>> xml = stream.to_xml()
    """

    def __init__(self, base_url: str, pretty: bool = False) -> None:
        """初期化

        Args:
            base_url: パス形式のURLを解決するベースURL
            pretty: インデント付きで出力するか
        """
        self.base_url = normalize_base_url(base_url)
        self.pretty = pretty
        self._layout = _XMLLayout(pretty)
        self._entries: List[SitemapEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> List[SitemapEntry]:
        """蓄積済みエントリ"""
        return list(self._entries)

    def add(self, entry: EntryLike) -> SitemapStream:
        """エントリを追加

        Raises:
            ValidationError: url の無いエントリ
        """
        self._entries.append(coerce_entry(entry))
        return self

    def add_all(self, entries: Iterable[EntryLike]) -> SitemapStream:
        """複数エントリを追加"""
        for entry in entries:
            self.add(entry)
        return self

    def extensions(self) -> Set[str]:
        """蓄積済みエントリが使用する拡張の集合"""
        used: Set[str] = set()
        for entry in self._entries:
            used.update(_entry_extensions(entry))
        return used

    def start(self, extensions: Iterable[str] | None = None) -> str:
        """文書の開始部分（XML宣言と urlset 開始タグ）

        Args:
            extensions: 宣言する拡張名。None の場合は蓄積済みエントリから判定

        Returns:
            開始部分の文字列
        """
        used = set(extensions) if extensions is not None else self.extensions()
        unknown = used - set(EXTENSION_NAMESPACES)
        if unknown:
            raise ValidationError(
                f"Unknown sitemap extension(s): {sorted(unknown)}",
                field="extensions",
            )

        xml = XML_DECLARATION
        xml += f'<urlset xmlns="{SITEMAP_NS}"'
        for prefix, namespace in EXTENSION_NAMESPACES.items():
            if prefix in used:
                xml += f' xmlns:{prefix}="{namespace}"'
        xml += ">\n"
        return xml

    def render_entry(self, entry: EntryLike) -> str:
        """1エントリ分の ``<url>`` 要素を生成"""
        entry = coerce_entry(entry)
        layout = self._layout
        indent, sub, nl = layout.indent, layout.sub_indent, layout.nl

        item = f"{indent}<url>{nl}"
        item += f"{sub}<loc>{escape_xml(self._resolve(entry.url))}</loc>{nl}"

        if entry.last_modified is not None:
            item += f"{sub}<lastmod>{to_date_string(entry.last_modified)}</lastmod>{nl}"

        if entry.change_frequency is not None:
            item += f"{sub}<changefreq>{escape_xml(entry.change_frequency.value)}</changefreq>{nl}"

        if entry.priority is not None:
            item += f"{sub}<priority>{float(entry.priority):.1f}</priority>{nl}"

        for alternate in entry.alternates:
            href = escape_xml(self._resolve(alternate.url))
            lang = escape_xml(alternate.language)
            item += f'{sub}<xhtml:link rel="alternate" hreflang="{lang}" href="{href}"/>{nl}'

        if entry.redirect is not None:
            item += self._render_redirect(entry.redirect)

        for image in entry.images:
            item += self._render_image(image)

        for video in entry.videos:
            item += self._render_video(video)

        if entry.news is not None:
            item += self._render_news(entry.news)

        item += f"{indent}</url>{nl}"
        return item

    def end(self) -> str:
        """文書の終了部分"""
        return "</urlset>"

    def to_xml(self) -> str:
        """蓄積済みエントリから完全な文書を生成"""
        parts = [self.start()]
        parts.extend(self.render_entry(entry) for entry in self._entries)
        parts.append(self.end())
        return "".join(parts)

    # === Extensions ===

    def _resolve(self, url: str) -> str:
        return resolve_url(self.base_url, url)

    def _render_redirect(self, redirect) -> str:
        sub, nl = self._layout.sub_indent, self._layout.nl
        if redirect.canonical:
            href = escape_xml(self._resolve(redirect.canonical))
            return f'{sub}<xhtml:link rel="canonical" href="{href}"/>{nl}'
        # コメント内に "--" は書けない
        source = redirect.from_url.replace("--", "%2D%2D")
        target = redirect.to_url.replace("--", "%2D%2D")
        return f"{sub}<!-- Redirect: {source} \u2192 {target} ({redirect.status}) -->{nl}"

    def _render_image(self, image) -> str:
        sub, nl = self._layout.sub_indent, self._layout.nl
        xml = f"{sub}<image:image>{nl}"
        xml += f"{sub}  <image:loc>{escape_xml(self._resolve(image.loc))}</image:loc>{nl}"
        if image.title:
            xml += f"{sub}  <image:title>{escape_xml(image.title)}</image:title>{nl}"
        if image.caption:
            xml += f"{sub}  <image:caption>{escape_xml(image.caption)}</image:caption>{nl}"
        if image.geo_location:
            xml += (
                f"{sub}  <image:geo_location>{escape_xml(image.geo_location)}"
                f"</image:geo_location>{nl}"
            )
        if image.license:
            xml += f"{sub}  <image:license>{escape_xml(image.license)}</image:license>{nl}"
        xml += f"{sub}</image:image>{nl}"
        return xml

    def _render_video(self, video) -> str:
        sub, nl = self._layout.sub_indent, self._layout.nl
        xml = f"{sub}<video:video>{nl}"
        xml += (
            f"{sub}  <video:thumbnail_loc>{escape_xml(video.thumbnail_loc)}"
            f"</video:thumbnail_loc>{nl}"
        )
        xml += f"{sub}  <video:title>{escape_xml(video.title)}</video:title>{nl}"
        xml += (
            f"{sub}  <video:description>{escape_xml(video.description)}"
            f"</video:description>{nl}"
        )
        if video.content_loc:
            xml += (
                f"{sub}  <video:content_loc>{escape_xml(video.content_loc)}"
                f"</video:content_loc>{nl}"
            )
        if video.player_loc:
            xml += (
                f"{sub}  <video:player_loc>{escape_xml(video.player_loc)}"
                f"</video:player_loc>{nl}"
            )
        if video.duration:
            xml += f"{sub}  <video:duration>{int(video.duration)}</video:duration>{nl}"
        if video.view_count:
            xml += f"{sub}  <video:view_count>{int(video.view_count)}</video:view_count>{nl}"
        if video.publication_date is not None:
            xml += (
                f"{sub}  <video:publication_date>{to_iso_string(video.publication_date)}"
                f"</video:publication_date>{nl}"
            )
        if video.family_friendly:
            xml += (
                f"{sub}  <video:family_friendly>{escape_xml(video.family_friendly)}"
                f"</video:family_friendly>{nl}"
            )
        for tag in video.tags:
            xml += f"{sub}  <video:tag>{escape_xml(tag)}</video:tag>{nl}"
        xml += f"{sub}</video:video>{nl}"
        return xml

    def _render_news(self, news) -> str:
        sub, nl = self._layout.sub_indent, self._layout.nl
        xml = f"{sub}<news:news>{nl}"
        xml += f"{sub}  <news:publication>{nl}"
        xml += f"{sub}    <news:name>{escape_xml(news.publication_name)}</news:name>{nl}"
        xml += (
            f"{sub}    <news:language>{escape_xml(news.publication_language)}"
            f"</news:language>{nl}"
        )
        xml += f"{sub}  </news:publication>{nl}"
        xml += (
            f"{sub}  <news:publication_date>{to_iso_string(news.publication_date)}"
            f"</news:publication_date>{nl}"
        )
        xml += f"{sub}  <news:title>{escape_xml(news.title)}</news:title>{nl}"
        if news.genres:
            xml += f"{sub}  <news:genres>{escape_xml(news.genres)}</news:genres>{nl}"
        if news.keywords:
            keywords = ", ".join(escape_xml(k) for k in news.keywords)
            xml += f"{sub}  <news:keywords>{keywords}</news:keywords>{nl}"
        xml += f"{sub}</news:news>{nl}"
        return xml


class SitemapIndex:
    """インデックス文書シリアライザ

    シャードへの参照を蓄積し、``<sitemapindex>`` 文書を生成する。
    lastmod は日付精度で出力する。
    """

    def __init__(self, base_url: str, pretty: bool = False) -> None:
        self.base_url = normalize_base_url(base_url)
        self.pretty = pretty
        self._layout = _XMLLayout(pretty)
        self._entries: List[SitemapIndexEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> List[SitemapIndexEntry]:
        """蓄積済みインデックスエントリ"""
        return list(self._entries)

    def add(self, entry: Union[SitemapIndexEntry, str]) -> SitemapIndex:
        """インデックスエントリを追加

        文字列は ``SitemapIndexEntry(url=...)`` に正規化する。
        """
        if isinstance(entry, str):
            entry = SitemapIndexEntry(url=entry)
        if not isinstance(entry, SitemapIndexEntry) or not entry.url:
            raise ValidationError("Sitemap index entry is missing 'url'", field="url")
        self._entries.append(entry)
        return self

    def add_all(self, entries: Iterable[Union[SitemapIndexEntry, str]]) -> SitemapIndex:
        """複数エントリを追加"""
        for entry in entries:
            self.add(entry)
        return self

    def to_xml(self) -> str:
        """インデックス文書を生成"""
        indent, sub, nl = self._layout.indent, self._layout.sub_indent, self._layout.nl

        xml = XML_DECLARATION
        xml += f'<sitemapindex xmlns="{SITEMAP_NS}">\n'
        for entry in self._entries:
            loc = escape_xml(resolve_url(self.base_url, entry.url))
            xml += f"{indent}<sitemap>{nl}"
            xml += f"{sub}<loc>{loc}</loc>{nl}"
            if entry.last_modified is not None:
                xml += f"{sub}<lastmod>{to_date_string(entry.last_modified)}</lastmod>{nl}"
            xml += f"{indent}</sitemap>{nl}"
        xml += "</sitemapindex>"
        return xml


def _entry_extensions(entry: SitemapEntry) -> Set[str]:
    used: Set[str] = set()
    if entry.images:
        used.add("image")
    if entry.videos:
        used.add("video")
    if entry.news is not None:
        used.add("news")
    if entry.alternates or (entry.redirect is not None and entry.redirect.canonical):
        used.add("xhtml")
    return used
