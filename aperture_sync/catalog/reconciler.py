"""
Catalog reconciliation for aperture-sync.

Merges the items fetched from a playlist into the catalog under an
ownership rule: a sync for tag T only ever touches entries tagged T.

Full reconcile (reconcile):
    1. managed = entries whose tags contain T
    2. managed entry not in the playlist -> remove T from its tags;
       delete the entry when no tag is left
    3. managed entry still in the playlist -> overwrite src, alt, caption
       and url from the fetched item (tags and other keys untouched)
    4. playlist items with no managed entry -> new entry tagged [T],
       in playlist order

Append only (append_new):
    Playlist items whose id is not in the catalog at all are added; nothing
    else changes.

Entries are matched by video id: "yt:abc" and "abc" are the same item.

Usage:
    from aperture_sync.catalog import open_store, sync_catalog

    store = open_store(target, "reconcile", "demoItems", "defaultConfig")
    report = sync_catalog(store, resolved_items, tag="Music")
    print(report.updated, report.retired, report.deleted, report.inserted)
"""

from dataclasses import dataclass
from typing import Sequence

from aperture_sync.catalog.models import CatalogEntry, namespaced_id, strip_namespace
from aperture_sync.catalog.store import CatalogStore
from aperture_sync.core.config import MODE_RECONCILE
from aperture_sync.core.logger import get_logger
from aperture_sync.core.progress import CatalogProgressBar
from aperture_sync.youtube.models import ResolvedItem


logger = get_logger(__name__)


@dataclass
class ReconcileReport:
    """
    Counts of the actions applied to the catalog for one tag.

    Attributes:
        updated: Managed entries still in the playlist (fields overwritten).
        retired: Managed entries that left the playlist and lost the tag
                 but still have other tags.
        deleted: Managed entries that left the playlist and had no other tag.
        inserted: New entries.
        skipped: Append mode only: items already present in the catalog.
        committed: Whether the catalog file was written.
    """
    updated: int = 0
    retired: int = 0
    deleted: int = 0
    inserted: int = 0
    skipped: int = 0
    committed: bool = False

    @property
    def changed(self) -> int:
        return self.updated + self.retired + self.deleted + self.inserted


def _index_desired(desired: Sequence[ResolvedItem]) -> dict[str, ResolvedItem]:
    """Map video id to item; the first occurrence of an id wins."""
    index: dict[str, ResolvedItem] = {}
    for item in desired:
        index.setdefault(item.external_id, item)
    return index


def _progress(total: int, tag: str, show_progress: bool) -> CatalogProgressBar | None:
    if not show_progress or total == 0:
        return None
    return CatalogProgressBar(total=total, description=f"Catalog [{tag}]")


def reconcile(
    store: CatalogStore,
    desired: Sequence[ResolvedItem],
    tag: str,
    show_progress: bool = False
) -> ReconcileReport:
    """
    Apply the tag-scoped three-way merge to the store (without committing).

    Args:
        store: A store supporting upsert and delete.
        desired: Resolved playlist items, in playlist order.
        tag: Ownership tag of this sync.
        show_progress: Display a CatalogProgressBar.

    Returns:
        ReconcileReport with the applied counts.

    Raises:
        StoreError: If the store rejects an update or deletion.
    """
    report = ReconcileReport()
    remaining = _index_desired(desired)
    managed = [e for e in store.list_managed_entries(tag) if e.id]
    present = {strip_namespace(e.id) for e in managed}
    new_items = [item for key, item in remaining.items() if key not in present]

    logger.info(f"Existing items with tag '{tag}': {len(managed)}")

    progress = _progress(len(managed) + len(new_items), tag, show_progress)
    if progress is not None:
        progress.start()

    try:
        for entry in managed:
            item = remaining.get(strip_namespace(entry.id))

            if item is None:
                if entry.remove_tag(tag):
                    store.upsert(entry)
                    report.retired += 1
                    action = "retired"
                    logger.debug(f"Removed tag '{tag}' from {entry.id}, kept tags {entry.tags}")
                else:
                    store.delete(entry)
                    report.deleted += 1
                    action = "deleted"
                    logger.debug(f"Deleted {entry.id}")
            else:
                entry.apply(item)
                store.upsert(entry)
                report.updated += 1
                action = "updated"

            if progress is not None:
                progress.update(action)

        for item in new_items:
            store.insert(CatalogEntry.from_resolved(item, tag))
            report.inserted += 1
            if progress is not None:
                progress.update("inserted")
    finally:
        if progress is not None:
            progress.stop()

    return report


def append_new(
    store: CatalogStore,
    desired: Sequence[ResolvedItem],
    tag: str,
    show_progress: bool = False
) -> ReconcileReport:
    """
    Add playlist items whose id is not in the catalog at all.

    Existing entries are never modified, whatever their tags.

    Returns:
        ReconcileReport with inserted and skipped counts.
    """
    report = ReconcileReport()
    items = list(_index_desired(desired).values())

    progress = _progress(len(items), tag, show_progress)
    if progress is not None:
        progress.start()

    try:
        for item in items:
            if store.contains(namespaced_id(item.external_id)):
                report.skipped += 1
                action = "skipped"
            else:
                store.insert(CatalogEntry.from_resolved(item, tag))
                report.inserted += 1
                action = "inserted"
            if progress is not None:
                progress.update(action)
    finally:
        if progress is not None:
            progress.stop()

    logger.info(f"Appended {report.inserted} new items to {store.path}")
    return report


def sync_catalog(
    store: CatalogStore,
    desired: Sequence[ResolvedItem],
    tag: str,
    show_progress: bool = False
) -> ReconcileReport:
    """
    Merge desired into the store according to its mode, then commit.

    In reconcile mode the tag is also added to the filter list.

    Returns:
        ReconcileReport, with committed telling whether the file changed.

    Raises:
        StoreError: If the catalog cannot be edited or written.
    """
    if store.mode == MODE_RECONCILE:
        report = reconcile(store, desired, tag, show_progress)
        store.ensure_filter_present(tag)
    else:
        report = append_new(store, desired, tag, show_progress)

    report.committed = store.commit()
    return report
