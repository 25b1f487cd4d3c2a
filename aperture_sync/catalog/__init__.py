"""
Catalog layer for aperture-sync.

This module persists playlist items as gallery entries:
    - models: CatalogEntry and the "yt:" id namespace
    - documents: TypeScript module and JSON catalog files
    - store: append-only and reconciling stores over a document
    - reconciler: tag-scoped merge of fetched items into a store

Usage:
    from aperture_sync.catalog import open_store, sync_catalog

    store = open_store(Path("src/content/items.ts"), "append", "items", "defaultConfig")
    report = sync_catalog(store, resolved_items, tag="Gaming")
"""

from aperture_sync.catalog.documents import JsonDocument, TypeScriptDocument, open_document
from aperture_sync.catalog.models import (
    ENTRY_KIND,
    ID_PREFIX,
    CatalogEntry,
    namespaced_id,
    strip_namespace,
)
from aperture_sync.catalog.reconciler import (
    ReconcileReport,
    append_new,
    reconcile,
    sync_catalog,
)
from aperture_sync.catalog.store import (
    ALL_FILTER,
    AppendOnlyStore,
    CatalogStore,
    ReconcilingStore,
    open_store,
)

__all__ = [
    # Models
    "CatalogEntry",
    "ENTRY_KIND",
    "ID_PREFIX",
    "namespaced_id",
    "strip_namespace",
    # Documents
    "TypeScriptDocument",
    "JsonDocument",
    "open_document",
    # Stores
    "CatalogStore",
    "AppendOnlyStore",
    "ReconcilingStore",
    "ALL_FILTER",
    "open_store",
    # Reconciliation
    "ReconcileReport",
    "reconcile",
    "append_new",
    "sync_catalog",
]
