"""Sitemap Serializer Unit Tests.

シャード文書・インデックス文書のシリアライズのテスト。
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from datetime import datetime, timezone

import pytest

from sitemapkit.core.serializer import (
    IMAGE_NS,
    NEWS_NS,
    SITEMAP_NS,
    VIDEO_NS,
    XHTML_NS,
    SitemapIndex,
    SitemapStream,
    escape_xml,
    resolve_url,
)
from sitemapkit.core.types import (
    AlternateUrl,
    ChangeFrequency,
    EntryRedirect,
    SitemapEntry,
    SitemapImage,
    SitemapIndexEntry,
    SitemapNews,
    SitemapVideo,
)
from sitemapkit.errors import ValidationError

NS = {"sm": SITEMAP_NS}
BASE = "https://example.com"


def locs(xml: str) -> list[str]:
    """文書中の loc をすべて取り出す"""
    root = ET.fromstring(xml.encode("utf-8"))
    return [el.text for el in root.iter(f"{{{SITEMAP_NS}}}loc")]


# =============================================================================
# Test: helpers
# =============================================================================

class TestHelpers:
    """URL解決・エスケープのテスト"""

    def test_escape_all_entities(self):
        assert escape_xml("a&b<c>d\"e'f") == "a&amp;b&lt;c&gt;d&quot;e&apos;f"

    def test_escape_ampersand_first(self):
        """既存のエンティティも二重にエスケープされる"""
        assert escape_xml("&lt;") == "&amp;lt;"

    def test_resolve_path(self):
        assert resolve_url(BASE, "/about") == "https://example.com/about"

    def test_resolve_path_without_slash(self):
        assert resolve_url(BASE, "about") == "https://example.com/about"

    def test_resolve_absolute(self):
        """スキーム付きURLはそのまま"""
        assert resolve_url(BASE, "https://cdn.example.org/x") == "https://cdn.example.org/x"


# =============================================================================
# Test: SitemapStream
# =============================================================================

class TestSitemapStream:
    """SitemapStream のテスト"""

    def test_empty_document(self):
        xml = SitemapStream(BASE).to_xml()
        assert xml == (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            f'<urlset xmlns="{SITEMAP_NS}">\n'
            "</urlset>"
        )

    def test_compact_entry(self):
        """pretty=False ではエントリ間に改行が入らない"""
        stream = SitemapStream(BASE)
        stream.add("/a").add("/b")
        xml = stream.to_xml()
        assert (
            "<url><loc>https://example.com/a</loc></url>"
            "<url><loc>https://example.com/b</loc></url></urlset>"
        ) in xml

    def test_trailing_slash_on_base(self):
        """ベースURL末尾のスラッシュは1つだけ除去"""
        stream = SitemapStream("https://example.com/")
        stream.add("/a")
        assert locs(stream.to_xml()) == ["https://example.com/a"]

    def test_full_entry_fields(self):
        stream = SitemapStream(BASE)
        stream.add(SitemapEntry(
            url="/a",
            last_modified="2024-01-15T10:30:00Z",
            change_frequency=ChangeFrequency.DAILY,
            priority=0.8,
        ))
        xml = stream.to_xml()
        assert "<lastmod>2024-01-15</lastmod>" in xml
        assert "<changefreq>daily</changefreq>" in xml
        assert "<priority>0.8</priority>" in xml

    def test_priority_one_decimal(self):
        stream = SitemapStream(BASE).add(SitemapEntry(url="/a", priority=1))
        assert "<priority>1.0</priority>" in stream.to_xml()

    def test_escaping_parses(self):
        """特殊文字を含むURLもエスケープされて XML として解析できる"""
        url = "/search?q=a&b=<c>&d=\"e\"&f='g'"
        stream = SitemapStream(BASE).add(url)
        xml = stream.to_xml()
        assert "&amp;b=&lt;c&gt;" in xml
        assert locs(xml) == [f"https://example.com{url}"]

    def test_missing_url_rejected(self):
        with pytest.raises(ValidationError):
            SitemapStream(BASE).add({"priority": 0.5})

    def test_pretty_output(self):
        stream = SitemapStream(BASE, pretty=True).add("/a")
        xml = stream.to_xml()
        assert "  <url>\n    <loc>https://example.com/a</loc>\n  </url>\n" in xml
        assert xml.endswith("</urlset>")

    def test_no_extension_namespaces_by_default(self):
        xml = SitemapStream(BASE).add("/a").to_xml()
        assert "xmlns:image" not in xml
        assert "xmlns:xhtml" not in xml

    def test_alternates(self):
        """代替URLは xhtml:link として出力し名前空間を宣言する"""
        stream = SitemapStream(BASE).add(SitemapEntry(
            url="/a",
            alternates=[AlternateUrl("ja", "/ja/a"), AlternateUrl("en", "/en/a")],
        ))
        xml = stream.to_xml()
        assert f'xmlns:xhtml="{XHTML_NS}"' in xml
        root = ET.fromstring(xml.encode("utf-8"))
        links = root.findall(f".//{{{XHTML_NS}}}link")
        assert [link.get("hreflang") for link in links] == ["ja", "en"]
        assert links[0].get("href") == "https://example.com/ja/a"

    def test_redirect_canonical(self):
        """canonical 付きのリダイレクトは xhtml:link rel=canonical"""
        stream = SitemapStream(BASE).add(SitemapEntry(
            url="/old",
            redirect=EntryRedirect("/old", "/new", canonical="/new"),
        ))
        xml = stream.to_xml()
        assert f'xmlns:xhtml="{XHTML_NS}"' in xml
        root = ET.fromstring(xml.encode("utf-8"))
        link = root.find(f".//{{{XHTML_NS}}}link")
        assert link.get("rel") == "canonical"
        assert link.get("href") == "https://example.com/new"

    def test_redirect_comment(self):
        """canonical が無いリダイレクトはコメントとして残す"""
        stream = SitemapStream(BASE).add(SitemapEntry(
            url="/new",
            redirect=EntryRedirect("/old--page", "/new", status=302),
        ))
        xml = stream.to_xml()
        assert "<!-- Redirect: /old%2D%2Dpage \u2192 /new (302) -->" in xml
        assert "xmlns:xhtml" not in xml
        assert locs(xml) == ["https://example.com/new"]

    def test_extensions_parse(self):
        """画像・動画・ニュース拡張が整形式で出力される"""
        stream = SitemapStream(BASE, pretty=True).add(SitemapEntry(
            url="/watch",
            images=[SitemapImage(loc="/img/a.png", title="A & B")],
            videos=[SitemapVideo(
                thumbnail_loc="https://example.com/t.jpg",
                title="Video",
                description="<b>desc</b>",
                duration=120,
                publication_date=datetime(2024, 1, 15, tzinfo=timezone.utc),
                tags=["x", "y"],
            )],
            news=SitemapNews(
                publication_name="Example Times",
                publication_language="en",
                publication_date="2024-01-15T08:00:00Z",
                title="Headline",
                keywords=["a", "b"],
            ),
        ))
        xml = stream.to_xml()
        root = ET.fromstring(xml.encode("utf-8"))

        image_loc = root.find(f".//{{{IMAGE_NS}}}loc")
        assert image_loc.text == "https://example.com/img/a.png"
        assert root.find(f".//{{{IMAGE_NS}}}title").text == "A & B"
        assert root.find(f".//{{{VIDEO_NS}}}description").text == "<b>desc</b>"
        assert [t.text for t in root.iter(f"{{{VIDEO_NS}}}tag")] == ["x", "y"]
        assert root.find(f".//{{{VIDEO_NS}}}publication_date").text == "2024-01-15T00:00:00.000Z"
        assert root.find(f".//{{{NEWS_NS}}}keywords").text == "a, b"

    def test_streaming_api(self):
        """start / render_entry / end を連結すると to_xml と同じ"""
        stream = SitemapStream(BASE).add("/a").add("/b")
        streamed = stream.start() + "".join(
            stream.render_entry(e) for e in stream.entries
        ) + stream.end()
        assert streamed == stream.to_xml()

    def test_start_with_explicit_extensions(self):
        header = SitemapStream(BASE).start(extensions=["image"])
        assert f'xmlns:image="{IMAGE_NS}"' in header

    def test_start_unknown_extension(self):
        with pytest.raises(ValidationError):
            SitemapStream(BASE).start(extensions=["audio"])


# =============================================================================
# Test: SitemapIndex
# =============================================================================

class TestSitemapIndex:
    """SitemapIndex のテスト"""

    def test_empty_index(self):
        xml = SitemapIndex(BASE).to_xml()
        assert xml == (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            f'<sitemapindex xmlns="{SITEMAP_NS}">\n'
            "</sitemapindex>"
        )

    def test_string_entries(self):
        index = SitemapIndex(BASE).add("/sitemap-1.xml")
        xml = index.to_xml()
        assert "<sitemap><loc>https://example.com/sitemap-1.xml</loc></sitemap>" in xml

    def test_lastmod_date_precision(self):
        index = SitemapIndex(BASE).add(SitemapIndexEntry(
            url="https://example.com/sitemap-1.xml",
            last_modified=datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
        ))
        assert "<lastmod>2024-01-15</lastmod>" in index.to_xml()

    def test_missing_url(self):
        with pytest.raises(ValidationError):
            SitemapIndex(BASE).add(SitemapIndexEntry(url=""))

    def test_parses(self):
        index = SitemapIndex(BASE).add_all(["/s-1.xml", "/s-2.xml?a=1&b=2"])
        assert locs(index.to_xml()) == [
            "https://example.com/s-1.xml",
            "https://example.com/s-2.xml?a=1&b=2",
        ]
