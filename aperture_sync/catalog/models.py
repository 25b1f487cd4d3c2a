"""
Catalog entry model for aperture-sync.

A catalog entry is one gallery item persisted in the site's catalog file.
Entries created by a sync carry a namespaced id ("yt:<video id>") and the
"yt-video" kind. Ownership is expressed through tags: an entry is managed
by tag T iff T is in its tags.

Persisted Keys:
    id, kind, src, alt, caption, url, tags

Any other key found on a persisted entry is kept in CatalogEntry.extra and
written back untouched.
"""

from dataclasses import dataclass, field
from typing import Any

from aperture_sync.youtube.models import ResolvedItem


ID_PREFIX = "yt:"
ENTRY_KIND = "yt-video"

# Persisted key names, in serialization order
KEY_ID = "id"
KEY_KIND = "kind"
KEY_SRC = "src"
KEY_ALT = "alt"
KEY_CAPTION = "caption"
KEY_URL = "url"
KEY_TAGS = "tags"

KNOWN_KEYS = (KEY_ID, KEY_KIND, KEY_SRC, KEY_ALT, KEY_CAPTION, KEY_URL, KEY_TAGS)


def namespaced_id(external_id: str) -> str:
    """Return the catalog id for a video id ("abc" -> "yt:abc")."""
    return f"{ID_PREFIX}{external_id}"


def strip_namespace(entry_id: str) -> str:
    """Return the video id for a catalog id; ids without the prefix are returned as-is."""
    if entry_id.startswith(ID_PREFIX):
        return entry_id[len(ID_PREFIX):]
    return entry_id


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


@dataclass
class CatalogEntry:
    """
    One persisted gallery item.

    Attributes:
        id: Entry id. Synced entries use "yt:<video id>".
        kind: Item discriminant ("yt-video" for synced entries).
        asset_ref: Thumbnail reference (persisted as 'src').
        label: Accessible label (persisted as 'alt').
        caption: Caption shown under the item, None if absent.
        link: Link target (persisted as 'url'), None if absent.
        tags: Ordered, distinct ownership tags.
        extra: Persisted keys this model does not know about.
        ref: Store-specific handle of the persisted element. Not compared.

    Example:
        entry = CatalogEntry.from_resolved(resolved_item, tag="Music")
        entry.to_record()
        # {'id': 'yt:abc', 'kind': 'yt-video', 'src': 'media/yt/abc.webp', ...}
    """

    id: str
    kind: str
    asset_ref: str
    label: str
    caption: str | None = None
    link: str | None = None
    tags: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)
    ref: Any = field(default=None, compare=False, repr=False)

    @property
    def external_id(self) -> str:
        return strip_namespace(self.id)

    def is_managed_by(self, tag: str) -> bool:
        return tag in self.tags

    def remove_tag(self, tag: str) -> list[str]:
        """Drop tag from the entry and return the remaining tags."""
        self.tags = [t for t in self.tags if t != tag]
        return self.tags

    def apply(self, resolved: ResolvedItem) -> None:
        """
        Overwrite the presentation fields from a resolved playlist item.

        Only src, alt, caption and url change; id, kind, tags and extra
        keys are left alone.
        """
        self.asset_ref = resolved.local_asset_path
        self.label = resolved.title
        self.caption = resolved.title
        self.link = resolved.canonical_url

    @classmethod
    def from_resolved(cls, resolved: ResolvedItem, tag: str) -> "CatalogEntry":
        """Create a new entry owned by tag alone."""
        return cls(
            id=namespaced_id(resolved.external_id),
            kind=ENTRY_KIND,
            asset_ref=resolved.local_asset_path,
            label=resolved.title,
            caption=resolved.title,
            link=resolved.canonical_url,
            tags=[tag],
        )

    @classmethod
    def from_record(cls, record: dict[str, Any], ref: Any = None) -> "CatalogEntry":
        """
        Build an entry from a persisted record.

        Missing or non-string values fall back to empty defaults; tags keep
        only string values, first occurrence wins.
        """
        raw_tags = record.get(KEY_TAGS)
        tags: list[str] = []
        if isinstance(raw_tags, list):
            for tag in raw_tags:
                if isinstance(tag, str) and tag not in tags:
                    tags.append(tag)

        return cls(
            id=_as_str(record.get(KEY_ID)) or "",
            kind=_as_str(record.get(KEY_KIND)) or "image",
            asset_ref=_as_str(record.get(KEY_SRC)) or "",
            label=_as_str(record.get(KEY_ALT)) or "",
            caption=_as_str(record.get(KEY_CAPTION)),
            link=_as_str(record.get(KEY_URL)),
            tags=tags,
            extra={k: v for k, v in record.items() if k not in KNOWN_KEYS},
            ref=ref,
        )

    def to_record(self) -> dict[str, Any]:
        """Return the persisted form, known keys first, extra keys after."""
        record: dict[str, Any] = {
            KEY_ID: self.id,
            KEY_KIND: self.kind,
            KEY_SRC: self.asset_ref,
            KEY_ALT: self.label,
        }
        if self.caption is not None:
            record[KEY_CAPTION] = self.caption
        if self.link is not None:
            record[KEY_URL] = self.link
        record[KEY_TAGS] = list(self.tags)
        record.update(self.extra)
        return record
