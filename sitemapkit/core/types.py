"""Sitemap Core Types.

サイトマップ生成・差分計算で使用する型定義。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from sitemapkit.errors import ValidationError

LastModified = Union[datetime, date, str]


class ChangeFrequency(str, Enum):
    """更新頻度

    サイトマッププロトコルの changefreq トークン。
    """
    ALWAYS = "always"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    NEVER = "never"


class ChangeType(str, Enum):
    """変更タイプ

    Attributes:
        ADD: 新規追加
        UPDATE: 内容変更
        REMOVE: 削除
    """
    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"


def parse_timestamp(value: LastModified) -> datetime:
    """日時値を datetime に変換

    ``Z`` サフィックス付きの ISO 8601 文字列も受け付ける。

    Args:
        value: datetime / date / ISO 8601 文字列

    Returns:
        datetime
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise ValidationError(
            f"Invalid timestamp: {value!r}",
            field="last_modified",
            value=value,
        ) from e


def to_date_string(value: LastModified) -> str:
    """日付精度 (YYYY-MM-DD) の文字列に変換

    タイムゾーン付きの datetime は UTC に正規化してから日付を取り出す。
    """
    if isinstance(value, date) and not isinstance(value, datetime):
        return value.isoformat()
    moment = parse_timestamp(value)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.date().isoformat()


def to_utc(value: LastModified) -> datetime:
    """タイムゾーン付き UTC の datetime に変換

    タイムゾーン無しの値は UTC とみなす。
    """
    moment = parse_timestamp(value)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def to_iso_string(value: LastModified) -> str:
    """完全な ISO 8601 文字列に変換（動画・ニュースの日付用）"""
    moment = parse_timestamp(value)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
        return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"
    return moment.isoformat()


@dataclass
class AlternateUrl:
    """言語別代替URL

    Attributes:
        language: hreflang 値
        url: 代替URL（パスまたは絶対URL）
    """
    language: str
    url: str

    def to_dict(self) -> Dict[str, Any]:
        """辞書に変換"""
        return {"language": self.language, "url": self.url}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AlternateUrl:
        """辞書から作成"""
        return cls(
            language=data.get("language", data.get("lang", "")),
            url=data["url"],
        )


@dataclass
class SitemapImage:
    """画像拡張"""
    loc: str
    title: str | None = None
    caption: str | None = None
    geo_location: str | None = None
    license: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        """辞書に変換"""
        return {
            "loc": self.loc,
            "title": self.title,
            "caption": self.caption,
            "geo_location": self.geo_location,
            "license": self.license,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SitemapImage:
        """辞書から作成"""
        return cls(
            loc=data["loc"],
            title=data.get("title"),
            caption=data.get("caption"),
            geo_location=data.get("geo_location"),
            license=data.get("license"),
        )


@dataclass
class SitemapVideo:
    """動画拡張"""
    thumbnail_loc: str
    title: str
    description: str
    content_loc: str | None = None
    player_loc: str | None = None
    duration: int | None = None
    view_count: int | None = None
    publication_date: LastModified | None = None
    family_friendly: str | None = None
    tags: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """辞書に変換"""
        return {
            "thumbnail_loc": self.thumbnail_loc,
            "title": self.title,
            "description": self.description,
            "content_loc": self.content_loc,
            "player_loc": self.player_loc,
            "duration": self.duration,
            "view_count": self.view_count,
            "publication_date": _timestamp_to_json(self.publication_date),
            "family_friendly": self.family_friendly,
            "tags": self.tags,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SitemapVideo:
        """辞書から作成"""
        return cls(
            thumbnail_loc=data["thumbnail_loc"],
            title=data["title"],
            description=data["description"],
            content_loc=data.get("content_loc"),
            player_loc=data.get("player_loc"),
            duration=data.get("duration"),
            view_count=data.get("view_count"),
            publication_date=data.get("publication_date"),
            family_friendly=data.get("family_friendly"),
            tags=list(data.get("tags", data.get("tag", [])) or []),
        )


@dataclass
class SitemapNews:
    """ニュース拡張"""
    publication_name: str
    publication_language: str
    publication_date: LastModified
    title: str
    genres: str | None = None
    keywords: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """辞書に変換"""
        return {
            "publication_name": self.publication_name,
            "publication_language": self.publication_language,
            "publication_date": _timestamp_to_json(self.publication_date),
            "title": self.title,
            "genres": self.genres,
            "keywords": self.keywords,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SitemapNews:
        """辞書から作成"""
        publication = data.get("publication") or {}
        return cls(
            publication_name=data.get("publication_name", publication.get("name", "")),
            publication_language=data.get(
                "publication_language", publication.get("language", "")
            ),
            publication_date=data["publication_date"],
            title=data["title"],
            genres=data.get("genres"),
            keywords=list(data.get("keywords", []) or []),
        )


REDIRECT_STATUSES = (301, 302)


def _check_redirect_status(status: Any) -> int:
    if status not in REDIRECT_STATUSES:
        raise ValidationError(
            f"Redirect status must be 301 or 302, got {status!r}",
            field="status",
            value=status,
        )
    return int(status)


@dataclass
class RedirectRule:
    """リダイレクト規則（from -> to）

    Attributes:
        from_url: 転送元URL
        to_url: 転送先URL
        status: HTTPステータス (301/302)
        created_at: 登録日時
    """
    from_url: str
    to_url: str
    status: int = 301
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.from_url or not self.to_url:
            raise ValidationError(
                "Redirect rule needs both 'from' and 'to'",
                field="redirect",
            )
        if self.from_url == self.to_url:
            raise ValidationError(
                f"Redirect rule points to itself: {self.from_url}",
                field="redirect",
            )
        self.status = _check_redirect_status(self.status)
        if self.created_at is not None:
            self.created_at = to_utc(self.created_at)

    def to_dict(self) -> Dict[str, Any]:
        """辞書に変換"""
        return {
            "from": self.from_url,
            "to": self.to_url,
            "type": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> RedirectRule:
        """辞書から作成（``type`` は ``status`` の別名）"""
        return cls(
            from_url=data.get("from", ""),
            to_url=data.get("to", ""),
            status=data.get("type", data.get("status", 301)),
            created_at=data.get("created_at"),
        )


@dataclass
class EntryRedirect:
    """エントリに付与されたリダイレクト情報

    canonical がある場合は ``<xhtml:link rel="canonical">`` を、
    無い場合はコメントを出力する。
    """
    from_url: str
    to_url: str
    status: int = 301
    canonical: str | None = None

    def __post_init__(self) -> None:
        self.status = _check_redirect_status(self.status)

    @classmethod
    def from_rule(cls, rule: RedirectRule, canonical: bool = False) -> EntryRedirect:
        """規則から作成"""
        return cls(
            from_url=rule.from_url,
            to_url=rule.to_url,
            status=rule.status,
            canonical=rule.to_url if canonical else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """辞書に変換"""
        data: Dict[str, Any] = {
            "from": self.from_url,
            "to": self.to_url,
            "type": self.status,
        }
        if self.canonical:
            data["canonical"] = self.canonical
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> EntryRedirect:
        """辞書から作成"""
        return cls(
            from_url=data["from"],
            to_url=data["to"],
            status=data.get("type", 301),
            canonical=data.get("canonical"),
        )


@dataclass
class SitemapEntry:
    """サイトマップエントリ（URL 1件）

    生成パスごとに作られ、作成後は変更しない。

    Attributes:
        url: URL またはベースURLからのパス（生成パス内で一意キー）
        last_modified: 最終更新日時
        change_frequency: 更新頻度
        priority: 優先度（0.0-1.0 が慣例、検証はしない）
        alternates: 言語別代替URL（順序あり）
        images: 画像拡張
        videos: 動画拡張
        news: ニュース拡張
        redirect: リダイレクト情報
    """
    url: str
    last_modified: LastModified | None = None
    change_frequency: ChangeFrequency | None = None
    priority: float | None = None
    alternates: List[AlternateUrl] = field(default_factory=list)
    images: List[SitemapImage] = field(default_factory=list)
    videos: List[SitemapVideo] = field(default_factory=list)
    news: SitemapNews | None = None
    redirect: EntryRedirect | None = None

    def __post_init__(self) -> None:
        if isinstance(self.change_frequency, str) and not isinstance(
            self.change_frequency, ChangeFrequency
        ):
            try:
                self.change_frequency = ChangeFrequency(self.change_frequency)
            except ValueError as e:
                raise ValidationError(
                    f"Invalid change frequency: {self.change_frequency!r}",
                    field="change_frequency",
                    value=self.change_frequency,
                ) from e

    def to_dict(self) -> Dict[str, Any]:
        """辞書に変換"""
        return {
            "url": self.url,
            "last_modified": _timestamp_to_json(self.last_modified),
            "change_frequency": (
                self.change_frequency.value if self.change_frequency else None
            ),
            "priority": self.priority,
            "alternates": [a.to_dict() for a in self.alternates],
            "images": [i.to_dict() for i in self.images],
            "videos": [v.to_dict() for v in self.videos],
            "news": self.news.to_dict() if self.news else None,
            "redirect": self.redirect.to_dict() if self.redirect else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SitemapEntry:
        """辞書から作成

        ``url`` が欠けている場合は ValidationError。
        """
        url = data.get("url")
        if not url:
            raise ValidationError("Sitemap entry is missing 'url'", field="url")
        news = data.get("news")
        redirect = data.get("redirect")
        return cls(
            url=url,
            last_modified=data.get("last_modified", data.get("lastmod")),
            change_frequency=data.get("change_frequency", data.get("changefreq")),
            priority=data.get("priority"),
            alternates=[AlternateUrl.from_dict(a) for a in data.get("alternates") or []],
            images=[SitemapImage.from_dict(i) for i in data.get("images") or []],
            videos=[SitemapVideo.from_dict(v) for v in data.get("videos") or []],
            news=SitemapNews.from_dict(news) if news else None,
            redirect=EntryRedirect.from_dict(redirect) if redirect else None,
        )


EntryLike = Union[SitemapEntry, Dict[str, Any], str]


def coerce_entry(value: EntryLike) -> SitemapEntry:
    """エントリ相当の値を SitemapEntry に正規化

    Args:
        value: SitemapEntry / 辞書 / URL文字列

    Returns:
        SitemapEntry

    Raises:
        ValidationError: url が無い、または型が不正な場合
    """
    if isinstance(value, SitemapEntry):
        entry = value
    elif isinstance(value, str):
        entry = SitemapEntry(url=value)
    elif isinstance(value, dict):
        entry = SitemapEntry.from_dict(value)
    else:
        raise ValidationError(
            f"Unsupported sitemap entry type: {type(value).__name__}",
            field="entry",
        )
    if not entry.url:
        raise ValidationError("Sitemap entry is missing 'url'", field="url")
    return entry


@dataclass
class SitemapIndexEntry:
    """インデックスエントリ（シャードへのポインタ）"""
    url: str
    last_modified: LastModified | None = None


@dataclass
class SitemapChange:
    """変更レコード

    変更ログに保存される唯一の永続単位。

    Attributes:
        change_type: 変更タイプ
        url: 対象URL
        entry: エントリ（add/update では必須、remove では無し）
        timestamp: 変更日時
    """
    change_type: ChangeType
    url: str
    entry: SitemapEntry | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if not isinstance(self.change_type, ChangeType):
            try:
                self.change_type = ChangeType(self.change_type)
            except ValueError as e:
                raise ValidationError(
                    f"Unknown change type: {self.change_type!r}",
                    field="change_type",
                    value=self.change_type,
                ) from e
        # 比較のため常に UTC に揃える
        self.timestamp = to_utc(self.timestamp)
        if not self.url:
            raise ValidationError("Change record is missing 'url'", field="url")
        if self.change_type != ChangeType.REMOVE and self.entry is None:
            raise ValidationError(
                f"Change record of type '{self.change_type.value}' requires an entry",
                field="entry",
                url=self.url,
            )

    def to_dict(self) -> Dict[str, Any]:
        """辞書に変換"""
        return {
            "type": self.change_type.value,
            "url": self.url,
            "entry": self.entry.to_dict() if self.entry else None,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SitemapChange:
        """辞書から作成"""
        entry = data.get("entry")
        return cls(
            change_type=data.get("type"),
            url=data.get("url", ""),
            entry=SitemapEntry.from_dict(entry) if entry else None,
            timestamp=data.get("timestamp") or datetime.now(timezone.utc),
        )


@dataclass
class DiffResult:
    """差分結果

    Attributes:
        added: 追加エントリ
        updated: 更新エントリ
        removed: 削除URL
    """
    added: List[SitemapEntry] = field(default_factory=list)
    updated: List[SitemapEntry] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    @property
    def total_changes(self) -> int:
        """変更総数"""
        return len(self.added) + len(self.updated) + len(self.removed)

    @property
    def is_empty(self) -> bool:
        """変更なしか"""
        return self.total_changes == 0

    def to_dict(self) -> Dict[str, Any]:
        """辞書に変換"""
        return {
            "added": [e.to_dict() for e in self.added],
            "updated": [e.to_dict() for e in self.updated],
            "removed": list(self.removed),
            "summary": {
                "added": len(self.added),
                "updated": len(self.updated),
                "removed": len(self.removed),
                "total": self.total_changes,
            },
        }


@dataclass
class GenerationResult:
    """生成パスの結果

    Attributes:
        index_filename: インデックスのファイル名
        shard_filenames: 書き込んだシャードのファイル名（番号順）
        entry_count: 処理したエントリ数
        duration_ms: 所要時間
    """
    index_filename: str
    shard_filenames: List[str] = field(default_factory=list)
    entry_count: int = 0
    duration_ms: float = 0.0

    @property
    def shard_count(self) -> int:
        """シャード数"""
        return len(self.shard_filenames)

    def to_dict(self) -> Dict[str, Any]:
        """辞書に変換"""
        return {
            "index_filename": self.index_filename,
            "shard_filenames": list(self.shard_filenames),
            "shard_count": self.shard_count,
            "entry_count": self.entry_count,
            "duration_ms": self.duration_ms,
        }


def _timestamp_to_json(value: Optional[LastModified]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)
