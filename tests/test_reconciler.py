"""Tests for tag-scoped catalog reconciliation"""

import json

import pytest

from aperture_sync.catalog import (
    ReconcileReport,
    append_new,
    open_store,
    reconcile,
    sync_catalog,
)
from aperture_sync.core.exceptions import StoreError


def write_catalog(path, items, filters=None):
    data = {"items": items}
    if filters is not None:
        data["defaultConfig"] = {"filters": filters}
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def read_items(path):
    return json.loads(path.read_text(encoding="utf-8"))["items"]


def entry(entry_id, tags, alt="x"):
    return {"id": entry_id, "kind": "yt-video", "src": f"media/yt/{entry_id}.jpg", "alt": alt, "tags": tags}


class TestReconcile:
    """Test the full three-way merge"""

    def test_update_delete_insert(self, sample_json_catalog, make_resolved):
        """Test kept items are updated, departed ones deleted, new ones added"""
        store = open_store(sample_json_catalog, "reconcile", "demoItems", "defaultConfig")
        desired = [make_resolved("v1", "New title"), make_resolved("v2")]

        report = sync_catalog(store, desired, "music")

        assert report.updated == 1
        assert report.deleted == 1
        assert report.inserted == 1
        assert report.retired == 0
        assert report.committed is True

        data = json.loads(sample_json_catalog.read_text(encoding="utf-8"))
        items = data["demoItems"]
        assert [i["id"] for i in items] == ["yt:v1", "photo-1", "yt:v2"]
        assert items[0]["alt"] == "New title"
        assert items[0]["caption"] == "New title"
        assert items[0]["tags"] == ["music"]
        assert items[2] == {
            "id": "yt:v2",
            "kind": "yt-video",
            "src": "media/yt/v2.jpg",
            "alt": "Video v2",
            "caption": "Video v2",
            "url": "https://www.youtube.com/watch?v=v2",
            "tags": ["music"],
        }
        assert data["defaultConfig"]["filters"] == ["All", "Travel", "music"]

    def test_unowned_entries_untouched(self, sample_json_catalog, make_resolved):
        """Test entries without the tag are never modified"""
        before = json.loads(sample_json_catalog.read_text(encoding="utf-8"))["demoItems"][1]

        store = open_store(sample_json_catalog, "reconcile", "demoItems", "defaultConfig")
        sync_catalog(store, [make_resolved("photo-1", "Hijack")], "music")

        items = json.loads(sample_json_catalog.read_text(encoding="utf-8"))["demoItems"]
        assert before in items
        assert before["featured"] is True

    def test_retire_keeps_entry_with_other_tags(self, temp_dir, make_resolved):
        """Test a departed entry with another tag only loses this tag"""
        path = write_catalog(temp_dir / "c.json", [
            entry("yt:a", ["music", "Travel"]),
            entry("yt:b", ["music"]),
        ])
        store = open_store(path, "reconcile", "items", "defaultConfig")

        report = sync_catalog(store, [make_resolved("b")], "music")

        assert report.retired == 1
        assert report.deleted == 0
        items = read_items(path)
        assert items[0]["id"] == "yt:a"
        assert items[0]["tags"] == ["Travel"]

    def test_removed_from_playlist(self, temp_dir, make_resolved):
        """Test {A, B} then {B}: A is deleted, B stays"""
        path = write_catalog(temp_dir / "c.json", [entry("yt:A", ["music"]), entry("yt:B", ["music"])])
        store = open_store(path, "reconcile", "items", "defaultConfig")

        report = sync_catalog(store, [make_resolved("B")], "music")

        assert (report.updated, report.deleted, report.inserted) == (1, 1, 0)
        assert [i["id"] for i in read_items(path)] == ["yt:B"]

    def test_unprefixed_ids_match(self, temp_dir, make_resolved):
        """Test an entry stored without the yt: namespace is the same item"""
        path = write_catalog(temp_dir / "c.json", [entry("v1", ["music"], alt="Old")])
        store = open_store(path, "reconcile", "items", "defaultConfig")

        report = sync_catalog(store, [make_resolved("v1", "New")], "music")

        assert report.updated == 1
        assert report.inserted == 0
        items = read_items(path)
        assert len(items) == 1
        assert items[0]["id"] == "v1"
        assert items[0]["alt"] == "New"

    def test_idempotent(self, sample_json_catalog, make_resolved):
        """Test a second identical sync writes nothing"""
        desired = [make_resolved("v1", "New title"), make_resolved("v2")]
        store = open_store(sample_json_catalog, "reconcile", "demoItems", "defaultConfig")
        sync_catalog(store, desired, "music")
        first = sample_json_catalog.read_text(encoding="utf-8")

        store = open_store(sample_json_catalog, "reconcile", "demoItems", "defaultConfig")
        report = sync_catalog(store, desired, "music")

        assert report.inserted == 0
        assert report.deleted == 0
        assert report.committed is False
        assert sample_json_catalog.read_text(encoding="utf-8") == first

    def test_duplicate_desired_ids(self, temp_dir, make_resolved):
        """Test only the first occurrence of a repeated id is inserted"""
        path = write_catalog(temp_dir / "c.json", [])
        store = open_store(path, "reconcile", "items", "defaultConfig")

        report = reconcile(store, [make_resolved("a", "First"), make_resolved("a", "Second")], "music")

        assert report.inserted == 1
        store.commit()
        assert [i["alt"] for i in read_items(path)] == ["First"]

    def test_new_items_in_playlist_order(self, temp_dir, make_resolved):
        """Test new entries are appended in playlist order"""
        path = write_catalog(temp_dir / "c.json", [])
        store = open_store(path, "reconcile", "items", "defaultConfig")

        sync_catalog(store, [make_resolved(v) for v in ("c", "a", "b")], "music")

        assert [i["id"] for i in read_items(path)] == ["yt:c", "yt:a", "yt:b"]

    def test_filter_all_added_first(self, temp_dir, make_resolved):
        """Test 'All' is put in front of existing filters when missing"""
        path = write_catalog(temp_dir / "c.json", [], filters=["Travel"])
        store = open_store(path, "reconcile", "items", "defaultConfig")

        sync_catalog(store, [make_resolved("a")], "music")

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["defaultConfig"]["filters"] == ["All", "Travel", "music"]

    def test_missing_collection_fails(self, temp_dir):
        """Test reconcile mode requires the collection to exist"""
        path = temp_dir / "c.json"
        path.write_text("{}", encoding="utf-8")

        with pytest.raises(StoreError):
            open_store(path, "reconcile", "items", "defaultConfig")


class TestReconcileModule:
    """Test reconciliation of a TypeScript module"""

    def test_scenario_on_module(self, sample_module, make_resolved):
        """Test the merge edits the module in place"""
        store = open_store(sample_module, "reconcile", "demoItems", "defaultConfig")

        report = sync_catalog(store, [make_resolved("v1", "New title"), make_resolved("v2")], "music")

        assert (report.updated, report.deleted, report.inserted) == (1, 1, 1)
        text = sample_module.read_text(encoding="utf-8")
        assert "alt: 'New title'," in text
        assert "caption: 'New title'," in text
        assert "id: 'yt:v3'" not in text
        assert "id: 'yt:v2'" in text
        assert "// hand-curated, never synced" in text
        assert (
            "{ id: 'photo-1', kind: 'image', src: '/photos/p1.jpg', "
            "alt: \"Sunset, Porto\", tags: ['Travel'] }"
        ) in text
        assert "filters: ['All', 'Travel', 'music']," in text
        assert text.count("import type { GalleryItem }") == 1
        assert text.index("id: 'yt:v1'") < text.index("photo-1") < text.index("id: 'yt:v2'")

    def test_idempotent_on_module(self, sample_module, make_resolved):
        """Test a second identical sync leaves the module byte-identical"""
        desired = [make_resolved("v1", "New title"), make_resolved("v2")]
        sync_catalog(open_store(sample_module, "reconcile", "demoItems", "defaultConfig"), desired, "music")
        first = sample_module.read_text(encoding="utf-8")

        report = sync_catalog(
            open_store(sample_module, "reconcile", "demoItems", "defaultConfig"), desired, "music"
        )

        assert report.committed is False
        assert sample_module.read_text(encoding="utf-8") == first

    def test_local_type_import_kept(self, temp_dir, make_resolved):
        """Test reconciling a theme module never adds a second GalleryItem import"""
        path = temp_dir / "config.ts"
        path.write_text(
            "import type { GalleryConfig, GalleryItem } from './types';\n"
            "\n"
            "export const defaultConfig: GalleryConfig = { filters: ['All'] };\n"
            "\n"
            "export const demoItems: GalleryItem[] = [\n"
            "  { id: 'yt:v3', kind: 'yt-video', src: 'media/yt/v3.jpg', alt: 'Three', tags: ['music'] },\n"
            "];\n",
            encoding="utf-8"
        )

        report = sync_catalog(
            open_store(path, "reconcile", "demoItems", "defaultConfig"), [make_resolved("v2")], "music"
        )

        assert (report.deleted, report.inserted) == (1, 1)
        text = path.read_text(encoding="utf-8")
        assert text.count("GalleryItem }") == 1
        assert "aperture-theme" not in text
        assert text.startswith("import type { GalleryConfig, GalleryItem } from './types';\n")

    def test_reconcile_never_adds_type_import(self, temp_dir, make_resolved):
        """Test reconcile mode leaves a module's imports alone"""
        path = temp_dir / "config.ts"
        path.write_text("export const demoItems = [];\n", encoding="utf-8")

        sync_catalog(open_store(path, "reconcile", "demoItems", "defaultConfig"), [make_resolved("v1")], "music")

        text = path.read_text(encoding="utf-8")
        assert text.startswith("export const demoItems = [\n")
        assert "import" not in text

    def test_missing_config_object_skips_filters(self, sample_module, make_resolved):
        """Test a module without the config object still syncs items"""
        store = open_store(sample_module, "reconcile", "demoItems", "themeConfig")

        report = sync_catalog(store, [make_resolved("v1"), make_resolved("v3")], "music")

        assert report.updated == 2
        assert "filters: ['All', 'Travel']," in sample_module.read_text(encoding="utf-8")


class TestAppendNew:
    """Test append-only synchronization"""

    def test_only_new_ids_added(self, sample_json_catalog, make_resolved):
        """Test existing entries are skipped and left unchanged"""
        store = open_store(sample_json_catalog, "append", "demoItems", "defaultConfig")

        report = sync_catalog(store, [make_resolved("v1", "New title"), make_resolved("v2")], "music")

        assert report.skipped == 1
        assert report.inserted == 1
        assert report.deleted == 0
        data = json.loads(sample_json_catalog.read_text(encoding="utf-8"))
        ids = [i["id"] for i in data["demoItems"]]
        assert ids == ["yt:v1", "photo-1", "yt:v3", "yt:v2"]
        assert data["demoItems"][0]["alt"] == "Old title"
        assert data["defaultConfig"]["filters"] == ["All", "Travel"]

    def test_skips_ids_owned_by_other_tags(self, sample_json_catalog, make_resolved):
        """Test an id already present under any tag is not duplicated"""
        store = open_store(sample_json_catalog, "append", "demoItems", "defaultConfig")

        report = append_new(store, [make_resolved("v1")], "gaming")

        assert report == ReconcileReport(skipped=1)

    def test_nothing_new_writes_nothing(self, sample_module, make_resolved):
        """Test a module is not rewritten when every id is present"""
        before = sample_module.read_text(encoding="utf-8")
        store = open_store(sample_module, "append", "demoItems", "defaultConfig")

        report = sync_catalog(store, [make_resolved("v1"), make_resolved("v3")], "music")

        assert report.committed is False
        assert sample_module.read_text(encoding="utf-8") == before

    def test_append_store_refuses_updates(self, sample_json_catalog):
        """Test the append-only store cannot update or delete"""
        store = open_store(sample_json_catalog, "append", "demoItems", "defaultConfig")
        existing = store.list_entries()[0]

        with pytest.raises(StoreError):
            store.upsert(existing)
        with pytest.raises(StoreError):
            store.delete(existing)
