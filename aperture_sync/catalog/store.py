"""
Catalog stores for aperture-sync.

A store wraps a catalog document and exposes it as CatalogEntry objects.
The reconciler only talks to this contract:

    list_entries()                 every entry, in file order
    list_managed_entries(tag)      entries whose tags contain tag
    contains(entry_id)             whether an entry with this id exists
    insert(entry)                  append a new entry
    upsert(entry)                  write back an entry's changed fields
    delete(entry)                  remove an entry
    commit()                       save all pending edits at once

Two modes exist:

    AppendOnlyStore   Only inserts. upsert/delete raise StoreError. A
                      missing file or collection is created.
    ReconcilingStore  All operations plus ensure_filter_present(label). The
                      file and the collection must already exist.

Usage:
    from aperture_sync.catalog.store import open_store

    store = open_store(Path("src/lib/config.ts"), "reconcile",
                       collection="demoItems", config_object="defaultConfig")
    managed = store.list_managed_entries("Music")
    ...
    store.commit()
"""

from abc import ABC, abstractmethod
from pathlib import Path

from aperture_sync.catalog.documents import open_document
from aperture_sync.catalog.models import CatalogEntry, strip_namespace
from aperture_sync.core.config import MODE_APPEND, MODE_RECONCILE, VALID_MODES
from aperture_sync.core.exceptions import StoreError
from aperture_sync.core.logger import get_logger


logger = get_logger(__name__)


# Filter label that shows every item
ALL_FILTER = "All"
FILTERS_KEY = "filters"


class CatalogStore(ABC):
    """
    Base class of the catalog stores.

    Attributes:
        path: Catalog file.
        document: The underlying TypeScriptDocument or JsonDocument.
        collection_name: Name of the item collection.
        config_object: Name of the object holding 'filters'.
    """

    mode: str = ""

    def __init__(self, path: Path, collection: str, config_object: str) -> None:
        self.path = path
        self.collection_name = collection
        self.config_object = config_object
        self.document = open_document(path)
        self.collection = self._open_collection()
        self._entries = [
            CatalogEntry.from_record(node.to_record(), ref=node)
            for node in self.collection.records()
        ]

    @abstractmethod
    def _open_collection(self):
        """Return the item collection of the document."""

    def list_entries(self) -> list[CatalogEntry]:
        return list(self._entries)

    def list_managed_entries(self, tag: str) -> list[CatalogEntry]:
        return [entry for entry in self._entries if entry.is_managed_by(tag)]

    def contains(self, entry_id: str) -> bool:
        """
        Check whether an entry with this id exists, regardless of tags.

        Ids are compared without the "yt:" namespace, so an entry stored
        as "abc" and one stored as "yt:abc" are the same item.
        """
        wanted = strip_namespace(entry_id)
        return any(strip_namespace(entry.id) == wanted for entry in self._entries if entry.id)

    def insert(self, entry: CatalogEntry) -> None:
        entry.ref = self.collection.append(entry.to_record())
        self._entries.append(entry)

    def upsert(self, entry: CatalogEntry) -> None:
        raise StoreError(
            f"{type(self).__name__} cannot update entries",
            details={"path": str(self.path), "id": entry.id}
        )

    def delete(self, entry: CatalogEntry) -> None:
        raise StoreError(
            f"{type(self).__name__} cannot delete entries",
            details={"path": str(self.path), "id": entry.id}
        )

    def commit(self) -> bool:
        """
        Save every pending edit in one atomic file replace.

        Returns:
            True if the file was written, False if nothing changed.

        Raises:
            StoreError: If the file cannot be written.
        """
        try:
            written = self.document.save()
        except OSError as e:
            raise StoreError(
                f"Failed to write catalog file {self.path}: {e}",
                details={"path": str(self.path), "original_error": str(e)}
            ) from e

        if written:
            logger.debug(f"Saved {self.path}")
        else:
            logger.debug(f"No changes to {self.path}")
        return written


class AppendOnlyStore(CatalogStore):
    """
    Store that only ever adds entries.

    Existing entries are read (to skip ids already present) but never
    modified or removed.
    """

    mode = MODE_APPEND

    def _open_collection(self):
        collection = self.document.get_collection(self.collection_name)
        if collection is None:
            logger.info(f"Creating `{self.collection_name}` in {self.path}")
            collection = self.document.create_collection(self.collection_name)
        return collection

    def insert(self, entry: CatalogEntry) -> None:
        """Append an entry; typed modules also get the GalleryItem import."""
        self.document.ensure_type_import()
        super().insert(entry)


class ReconcilingStore(CatalogStore):
    """
    Store supporting field updates, deletions and the filter list.

    Raises:
        StoreError: On open, if the file or the collection does not exist.
    """

    mode = MODE_RECONCILE

    def _open_collection(self):
        if not self.document.exists:
            raise StoreError(
                f"File not found: {self.path}",
                details={"path": str(self.path)}
            )
        collection = self.document.get_collection(self.collection_name)
        if collection is None:
            raise StoreError(
                f"Could not find `{self.collection_name}` in {self.path}",
                details={"path": str(self.path), "collection": self.collection_name}
            )
        return collection

    def upsert(self, entry: CatalogEntry) -> None:
        """
        Write back the fields of entry that differ from the persisted ones.

        Entries without a persisted element are inserted.
        """
        if entry.ref is None:
            self.insert(entry)
            return

        before = CatalogEntry.from_record(entry.ref.to_record()).to_record()
        for key, value in entry.to_record().items():
            if before.get(key) != value:
                entry.ref.set(key, value)

    def delete(self, entry: CatalogEntry) -> None:
        if entry.ref is None:
            raise StoreError(
                f"Entry {entry.id} is not stored in {self.path}",
                details={"path": str(self.path), "id": entry.id}
            )
        self.collection.remove(entry.ref)
        self._entries = [e for e in self._entries if e is not entry]
        entry.ref = None

    def ensure_filter_present(self, label: str) -> list[str] | None:
        """
        Make sure the filter list contains "All" and label.

        Existing order is kept; "All" goes first when missing, label is
        appended when missing.

        Returns:
            The resulting filter list, or None when the config object does
            not exist in a module (filters are then left alone).
        """
        node = self.document.get_object(self.config_object)
        if node is None:
            node = self.document.create_object(self.config_object)
        if node is None:
            logger.warning(
                f"Could not find `{self.config_object}` in {self.path}; filters not updated"
            )
            return None

        current = node.get(FILTERS_KEY)
        filters: list[str] = []
        if isinstance(current, list):
            for value in current:
                if isinstance(value, str) and value not in filters:
                    filters.append(value)

        if ALL_FILTER not in filters:
            filters.insert(0, ALL_FILTER)
        if label not in filters:
            filters.append(label)

        if current != filters:
            node.set(FILTERS_KEY, filters)
        return filters


def open_store(path: Path, mode: str, collection: str, config_object: str) -> CatalogStore:
    """
    Open the catalog at path with the store matching mode.

    Args:
        path: Catalog file (.json for JSON, anything else is a module).
        mode: 'append' or 'reconcile'.
        collection: Name of the item collection.
        config_object: Name of the object holding 'filters'.

    Raises:
        StoreError: If the catalog cannot be opened in this mode.
        ValueError: If mode is unknown.
    """
    if mode not in VALID_MODES:
        raise ValueError(f"Unknown store mode: {mode}")
    store_class = ReconcilingStore if mode == MODE_RECONCILE else AppendOnlyStore
    return store_class(path, collection, config_object)
