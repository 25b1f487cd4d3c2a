"""
Data models for YouTube playlist items.

This module defines the immutable records produced by the source adapter
and enriched by the thumbnail acquirer:

    CanonicalItem - one playlist video, normalized from any listing tier
    ResolvedItem  - a CanonicalItem plus the asset reference for the catalog
"""

from dataclasses import dataclass
from typing import Any, Iterable


WATCH_URL_TEMPLATE = "https://www.youtube.com/watch?v={video_id}"

# Deterministic origin patterns, tried in this order
THUMBNAIL_URL_TEMPLATES = (
    "https://i.ytimg.com/vi_webp/{video_id}/maxresdefault.webp",
    "https://i.ytimg.com/vi/{video_id}/maxresdefault.jpg",
    "https://i.ytimg.com/vi/{video_id}/hqdefault.jpg",
)


def build_thumbnail_candidates(video_id: str, extra_urls: Iterable[str] = ()) -> tuple[str, ...]:
    """
    Build the ordered thumbnail candidate list for a video.

    Args:
        video_id: YouTube video id.
        extra_urls: Provider-reported thumbnail URLs, already sorted largest
                    first. Appended after the deterministic patterns.

    Returns:
        Tuple of distinct URLs, highest quality first.

    Example:
        build_thumbnail_candidates("abc")[0]
        # "https://i.ytimg.com/vi_webp/abc/maxresdefault.webp"
    """
    candidates: list[str] = []
    for url in (*(t.format(video_id=video_id) for t in THUMBNAIL_URL_TEMPLATES), *extra_urls):
        if url and url not in candidates:
            candidates.append(url)
    return tuple(candidates)


def _thumbnail_area(thumbnail: dict[str, Any]) -> int:
    width = thumbnail.get("width") or 0
    height = thumbnail.get("height") or 0
    return int(width) * int(height)


@dataclass(frozen=True)
class CanonicalItem:
    """
    Immutable representation of one playlist video.

    Attributes:
        external_id: YouTube video id, unique within one fetch.
                     Example: "dQw4w9WgXcQ"

        title: Video title. Empty string when the provider gives none.

        canonical_url: Watch URL, used as the catalog entry link.
                       Example: "https://www.youtube.com/watch?v=dQw4w9WgXcQ"

        thumbnail_candidates: Thumbnail URLs, highest quality first.

    Class Methods:
        from_data_api_item: Create from a Data API playlistItems resource.
        from_ytdlp_entry: Create from a yt-dlp flat playlist entry.

    Example:
        item = CanonicalItem.from_ytdlp_entry(entry)
        print(f"{item.external_id}: {item.title}")
    """

    external_id: str
    title: str
    canonical_url: str
    thumbnail_candidates: tuple[str, ...]

    @classmethod
    def create(
        cls,
        external_id: str,
        title: str | None = None,
        canonical_url: str | None = None,
        extra_thumbnails: Iterable[str] = ()
    ) -> "CanonicalItem":
        """
        Build an item, filling the watch URL and candidates from the id.

        Args:
            external_id: YouTube video id.
            title: Video title, None treated as empty.
            canonical_url: Watch URL, derived from the id when missing.
            extra_thumbnails: Provider thumbnail URLs, largest first.
        """
        return cls(
            external_id=external_id,
            title=(title or "").strip(),
            canonical_url=canonical_url or WATCH_URL_TEMPLATE.format(video_id=external_id),
            thumbnail_candidates=build_thumbnail_candidates(external_id, extra_thumbnails),
        )

    @classmethod
    def from_data_api_item(cls, item: dict[str, Any]) -> "CanonicalItem | None":
        """
        Create a CanonicalItem from a YouTube Data API playlistItems resource.

        Args:
            item: One element of the response 'items' array (part=snippet).

        Returns:
            CanonicalItem, or None when the resource has no video id.

        Thumbnails:
            snippet.thumbnails maps size names (default, medium, high,
            standard, maxres) to {url, width, height}. They are appended
            after the deterministic patterns, largest area first.
        """
        snippet = item.get("snippet") or {}
        video_id = (snippet.get("resourceId") or {}).get("videoId")
        if not video_id:
            return None

        thumbnails = sorted(
            (snippet.get("thumbnails") or {}).values(),
            key=_thumbnail_area,
            reverse=True
        )
        return cls.create(
            external_id=video_id,
            title=snippet.get("title"),
            extra_thumbnails=[t["url"] for t in thumbnails if t.get("url")],
        )

    @classmethod
    def from_ytdlp_entry(cls, entry: dict[str, Any] | None) -> "CanonicalItem | None":
        """
        Create a CanonicalItem from a yt-dlp flat playlist entry.

        Args:
            entry: One element of info['entries'] from extract_flat. yt-dlp
                   yields None for entries it failed on when ignoreerrors is set.

        Returns:
            CanonicalItem, or None when the entry is missing or has no id.

        The entry 'url' is only used as the canonical URL when it is a watch
        URL; flat extraction sometimes reports the bare id there.
        """
        if not entry:
            return None
        video_id = entry.get("id")
        if not video_id:
            return None

        url = entry.get("url") or ""
        canonical_url = url if url.startswith("http") and "watch" in url else None

        thumbnails = sorted(entry.get("thumbnails") or [], key=_thumbnail_area, reverse=True)
        return cls.create(
            external_id=video_id,
            title=entry.get("title"),
            canonical_url=canonical_url,
            extra_thumbnails=[t["url"] for t in thumbnails if t.get("url")],
        )


@dataclass(frozen=True)
class ResolvedItem:
    """
    A CanonicalItem with its resolved thumbnail reference.

    Attributes:
        item: The playlist item.
        local_asset_path: Public path under the asset mount
                          (e.g. "media/yt/abc.webp"), or a remote thumbnail
                          URL when no local file could be acquired.
        is_remote: True when local_asset_path is a remote fallback URL.
    """

    item: CanonicalItem
    local_asset_path: str
    is_remote: bool = False

    @property
    def external_id(self) -> str:
        return self.item.external_id

    @property
    def title(self) -> str:
        return self.item.title

    @property
    def canonical_url(self) -> str:
        return self.item.canonical_url
