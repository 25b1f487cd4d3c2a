"""Tests for playlist item and catalog entry models"""

from aperture_sync.catalog.models import CatalogEntry, namespaced_id, strip_namespace
from aperture_sync.youtube.models import CanonicalItem, ResolvedItem, build_thumbnail_candidates


class TestCanonicalItem:
    """Test CanonicalItem construction from provider payloads"""

    def test_thumbnail_candidates(self):
        """Test deterministic patterns come first, in quality order"""
        assert build_thumbnail_candidates("abc") == (
            "https://i.ytimg.com/vi_webp/abc/maxresdefault.webp",
            "https://i.ytimg.com/vi/abc/maxresdefault.jpg",
            "https://i.ytimg.com/vi/abc/hqdefault.jpg",
        )

    def test_from_data_api_item(self):
        """Test provider thumbnails are appended largest first, without duplicates"""
        item = CanonicalItem.from_data_api_item({
            "snippet": {
                "title": "  Song  ",
                "resourceId": {"videoId": "abc"},
                "thumbnails": {
                    "default": {"url": "https://i.ytimg.com/vi/abc/default.jpg", "width": 120, "height": 90},
                    "high": {"url": "https://i.ytimg.com/vi/abc/hqdefault.jpg", "width": 480, "height": 360},
                    "medium": {"url": "https://i.ytimg.com/vi/abc/mqdefault.jpg", "width": 320, "height": 180},
                },
            }
        })

        assert item.external_id == "abc"
        assert item.title == "Song"
        assert item.canonical_url == "https://www.youtube.com/watch?v=abc"
        assert item.thumbnail_candidates[3:] == (
            "https://i.ytimg.com/vi/abc/mqdefault.jpg",
            "https://i.ytimg.com/vi/abc/default.jpg",
        )

    def test_from_data_api_item_without_video(self):
        """Test deleted or private videos yield no item"""
        assert CanonicalItem.from_data_api_item({"snippet": {"title": "Private video"}}) is None

    def test_from_ytdlp_entry(self):
        """Test a flat entry maps to an item"""
        item = CanonicalItem.from_ytdlp_entry({
            "id": "abc",
            "title": None,
            "url": "https://www.youtube.com/watch?v=abc",
        })

        assert item.title == ""
        assert item.canonical_url == "https://www.youtube.com/watch?v=abc"
        assert CanonicalItem.from_ytdlp_entry(None) is None


class TestCatalogEntry:
    """Test CatalogEntry conversions"""

    def test_namespace(self):
        """Test ids are namespaced and stripped"""
        assert namespaced_id("abc") == "yt:abc"
        assert strip_namespace("yt:abc") == "abc"
        assert strip_namespace("abc") == "abc"

    def test_from_resolved(self):
        """Test new entries are owned by one tag"""
        resolved = ResolvedItem(CanonicalItem.create("abc", "Song"), "media/yt/abc.webp")

        record = CatalogEntry.from_resolved(resolved, "Music").to_record()

        assert record == {
            "id": "yt:abc",
            "kind": "yt-video",
            "src": "media/yt/abc.webp",
            "alt": "Song",
            "caption": "Song",
            "url": "https://www.youtube.com/watch?v=abc",
            "tags": ["Music"],
        }

    def test_from_record_keeps_extra_keys(self):
        """Test unknown keys survive and tags are de-duplicated"""
        entry = CatalogEntry.from_record({
            "id": "p1",
            "src": "/p1.jpg",
            "alt": "Photo",
            "tags": ["Travel", "Travel", 3],
            "featured": True,
        })

        assert entry.kind == "image"
        assert entry.tags == ["Travel"]
        assert entry.caption is None
        assert entry.to_record()["featured"] is True
        assert "caption" not in entry.to_record()

    def test_apply_keeps_identity(self):
        """Test apply only changes the presentation fields"""
        entry = CatalogEntry(id="abc", kind="video", asset_ref="old.jpg", label="Old",
                             tags=["Music", "Live"], extra={"order": 2})

        entry.apply(ResolvedItem(CanonicalItem.create("abc", "New"), "media/yt/abc.jpg"))

        assert (entry.id, entry.kind, entry.tags, entry.extra) == ("abc", "video", ["Music", "Live"], {"order": 2})
        assert (entry.asset_ref, entry.label, entry.caption) == ("media/yt/abc.jpg", "New", "New")

    def test_remove_tag(self):
        """Test removing a tag returns what is left"""
        entry = CatalogEntry(id="yt:a", kind="yt-video", asset_ref="", label="", tags=["Music", "Live"])

        assert entry.remove_tag("Music") == ["Live"]
        assert entry.remove_tag("Live") == []
