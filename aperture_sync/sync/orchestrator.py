"""
Sync orchestration for aperture-sync.

One sync takes a playlist through the whole pipeline:

    fetch_playlist_items  ->  acquire_all  ->  sync_catalog (commit)

run_all() repeats this for every playlist of a batch, one after the other,
so progress output and catalog commits never interleave. The first
playlist that fails stops the batch.

Usage:
    from aperture_sync.sync import SyncOptions, run_all

    options = SyncOptions.from_config(config)
    results = run_all(load_playlist_specs(Path("playlists.yaml")), options)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import requests

from aperture_sync.catalog import ReconcileReport, open_store, sync_catalog
from aperture_sync.core.config import Config, PlaylistSpec
from aperture_sync.core.logger import format_summary_message, get_logger
from aperture_sync.media import ThumbnailAcquirer, acquire_all
from aperture_sync.youtube import fetch_playlist_items


logger = get_logger(__name__)


@dataclass(frozen=True)
class SyncOptions:
    """
    Run-wide settings shared by every playlist of a run.

    PlaylistSpec fields (out_dir, max_items, force_update) override the
    matching defaults here when set.
    """
    target: Path
    mode: str
    collection: str
    config_object: str
    out_dir: Path
    asset_mount: str
    max_items: int | None = None
    force_update: bool = False
    threads: int = 4
    api_key: str | None = None
    api_timeout: int = 30
    download_timeout: int = 30
    show_progress: bool = True

    @classmethod
    def from_config(cls, config: Config, **overrides) -> "SyncOptions":
        """
        Build options from the loaded configuration.

        Keyword overrides whose value is None are ignored, so CLI options
        left unset keep the configured value.
        """
        values = {
            "target": config.sync.target,
            "mode": config.sync.mode,
            "collection": config.sync.collection,
            "config_object": config.sync.config_object,
            "out_dir": config.sync.out_dir,
            "asset_mount": config.sync.asset_mount,
            "max_items": config.sync.max_items,
            "force_update": config.sync.force_update,
            "threads": config.download.threads,
            "api_key": config.youtube.api_key,
            "api_timeout": config.youtube.timeout,
            "download_timeout": config.download.timeout,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass
class SyncResult:
    """
    Outcome of one playlist sync.

    Attributes:
        spec: The playlist that was synced.
        fetched: Number of playlist items fetched.
        remote_thumbnails: Items left with a remote thumbnail URL.
        report: Catalog actions, None when there was nothing to sync.
        nothing_to_sync: True when the playlist returned no items; the
                         catalog was not opened.
    """
    spec: PlaylistSpec
    fetched: int = 0
    remote_thumbnails: int = 0
    report: ReconcileReport | None = None
    nothing_to_sync: bool = False


def run_sync(
    spec: PlaylistSpec,
    options: SyncOptions,
    session: requests.Session | None = None
) -> SyncResult:
    """
    Sync one playlist into the catalog.

    Args:
        spec: Playlist, tag and per-playlist overrides.
        options: Run-wide defaults.
        session: Optional requests.Session shared by the Data API and
                 thumbnail downloads.

    Returns:
        SyncResult for the playlist.

    Raises:
        FetchError: If every listing tier failed.
        StoreError: If the catalog cannot be opened, edited or written.
    """
    out_dir = spec.out_dir if spec.out_dir is not None else options.out_dir
    max_items = spec.max_items if spec.max_items is not None else options.max_items
    force = spec.force_update if spec.force_update is not None else options.force_update

    logger.info(f"Starting sync of '{spec.tag}'")
    logger.info(f"  playlist: {spec.playlist}")
    logger.debug(f"  out_dir: {out_dir}, max: {max_items}, force: {force}")

    items = fetch_playlist_items(
        spec.playlist,
        max_items=max_items,
        api_key=options.api_key,
        timeout=options.api_timeout,
        session=session,
    )
    if not items:
        logger.info(f"No items returned from the playlist for '{spec.tag}'. Nothing to sync.")
        return SyncResult(spec=spec, nothing_to_sync=True)

    logger.info(f"Fetched {len(items)} items from playlist")

    store = open_store(options.target, options.mode, options.collection, options.config_object)

    acquirer = ThumbnailAcquirer(session=session, timeout=options.download_timeout)
    resolved = acquire_all(
        items,
        out_dir,
        options.asset_mount,
        force=force,
        threads=options.threads,
        acquirer=acquirer,
        show_progress=options.show_progress,
    )

    report = sync_catalog(store, resolved, spec.tag, show_progress=options.show_progress)

    logger.info(format_summary_message(
        spec.tag, report.updated, report.retired, report.deleted, report.inserted
    ))
    if report.committed:
        logger.info(f"Wrote {options.target}")
    logger.info(f"Thumbnails under {out_dir}")

    return SyncResult(
        spec=spec,
        fetched=len(items),
        remote_thumbnails=sum(r.is_remote for r in resolved),
        report=report,
    )


def run_all(
    specs: Sequence[PlaylistSpec],
    options: SyncOptions,
    session: requests.Session | None = None
) -> list[SyncResult]:
    """
    Sync every playlist in order, stopping at the first failure.

    Args:
        specs: Playlists to sync, processed strictly sequentially.
        options: Run-wide defaults.
        session: Optional shared requests.Session.

    Returns:
        One SyncResult per playlist.

    Raises:
        FetchError, StoreError: From the first playlist that fails; later
            playlists are not attempted.
    """
    session = session or requests.Session()
    results = []
    for index, spec in enumerate(specs, 1):
        if len(specs) > 1:
            logger.info(f"Playlist {index}/{len(specs)}: {spec.tag}")
        results.append(run_sync(spec, options, session=session))
    return results
