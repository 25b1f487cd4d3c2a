"""
Thumbnail acquisition for aperture-sync.

This module keeps the local thumbnail cache warm: for each playlist item it
tries the candidate URLs in order and stores the first successful download
as <dest_dir>/<key_id>.<ext>.

Rules:
    - <ext> is sniffed from the first candidate URL (jpg, jpeg, png, webp),
      defaulting to jpg.
    - A non-empty cached file makes acquisition a no-op unless force is set.
    - With force, every <key_id>.<ext> for the allowed extensions is purged
      before downloading again.
    - The first 2xx response with a non-empty body wins. Other statuses and
      transport errors advance to the next candidate.
    - The file only appears once a download succeeded (temp file + rename).

A total failure never stops the run: it is logged (and written to the
thumbnail failure report) and the item falls back to a remote URL.

Usage:
    from aperture_sync.media import ThumbnailAcquirer, acquire_all

    acquirer = ThumbnailAcquirer(timeout=30)
    path = acquirer.acquire(item.thumbnail_candidates, out_dir, item.external_id)

    resolved = acquire_all(items, out_dir, "media/yt", force=False, threads=4)
"""

from pathlib import Path
from typing import Sequence
from urllib.parse import urlparse

import requests

from aperture_sync.core.exceptions import ThumbnailAcquisitionError
from aperture_sync.core.logger import get_logger, log_thumbnail_failure
from aperture_sync.core.progress import ThumbnailProgressBar
from aperture_sync.utils import atomic_write_bytes, ensure_directory, run_in_parallel, try_in_order
from aperture_sync.youtube.models import CanonicalItem, ResolvedItem


logger = get_logger(__name__)


ALLOWED_EXTENSIONS = ("jpg", "jpeg", "png", "webp")
DEFAULT_EXTENSION = "jpg"


def sniff_extension(url: str) -> str:
    """
    Guess the image extension of a thumbnail URL.

    The last path segment's suffix is used when it is an allowed extension;
    otherwise the first '.<ext>' found anywhere in the URL; otherwise jpg.

    Examples:
        sniff_extension("https://i.ytimg.com/vi_webp/abc/maxresdefault.webp")  # "webp"
        sniff_extension("https://example.com/thumb?format=.png")                # "png"
        sniff_extension("https://example.com/thumb")                            # "jpg"
    """
    last_segment = urlparse(url).path.rsplit("/", 1)[-1].lower()
    if "." in last_segment:
        suffix = last_segment.rsplit(".", 1)[1]
        if suffix in ALLOWED_EXTENSIONS:
            return suffix

    lowered = url.lower()
    for extension in ALLOWED_EXTENSIONS:
        if f".{extension}" in lowered:
            return extension

    return DEFAULT_EXTENSION


def purge_cached(dest_dir: Path, key_id: str) -> list[Path]:
    """
    Delete every cached <key_id>.<ext> for the allowed extensions.

    Returns:
        The paths that were removed.
    """
    removed = []
    for extension in ALLOWED_EXTENSIONS:
        path = dest_dir / f"{key_id}.{extension}"
        if path.exists():
            path.unlink()
            removed.append(path)
    if removed:
        logger.debug(f"Purged {len(removed)} cached thumbnail(s) for {key_id}")
    return removed


class ThumbnailAcquirer:
    """
    Downloads thumbnails into a cache directory with candidate fallback.

    Attributes:
        session: requests.Session shared by every download (thread-safe for
                 plain GET requests).
        timeout: Per-request timeout in seconds.
    """

    def __init__(self, session: requests.Session | None = None, timeout: int = 30) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout

    def acquire(
        self,
        candidates: Sequence[str],
        dest_dir: Path,
        key_id: str,
        force: bool = False,
        title: str = ""
    ) -> Path | None:
        """
        Make sure a local thumbnail exists for key_id.

        Args:
            candidates: Thumbnail URLs, highest quality first.
            dest_dir: Cache directory (created if missing).
            key_id: File stem, typically the video id.
            force: Purge any cached file and download again.
            title: Item title, only used in the failure report.

        Returns:
            Path to the local file, or None if every candidate failed.
        """
        path, _ = self.acquire_status(candidates, dest_dir, key_id, force, title)
        return path

    def acquire_status(
        self,
        candidates: Sequence[str],
        dest_dir: Path,
        key_id: str,
        force: bool,
        title: str
    ) -> tuple[Path | None, bool]:
        """Return (path or None, whether the file was already cached)."""
        ensure_directory(dest_dir)

        if force:
            purge_cached(dest_dir, key_id)

        extension = sniff_extension(candidates[0]) if candidates else DEFAULT_EXTENSION
        path = dest_dir / f"{key_id}.{extension}"

        if not force and path.exists() and path.stat().st_size > 0:
            return path, True

        try:
            self._download(candidates, path)
        except ThumbnailAcquisitionError as e:
            log_thumbnail_failure(
                logger,
                key_id=key_id,
                title=title,
                fallback_url=candidates[0] if candidates else "",
                error_message=e.details.get("last_error", e.message),
            )
            return None, False

        return path, False

    def _download(self, candidates: Sequence[str], path: Path) -> None:
        """
        Try each candidate in order and write the first good body to path.

        Raises:
            ThumbnailAcquisitionError: If every candidate failed.
        """
        if not candidates:
            raise ThumbnailAcquisitionError(
                f"No thumbnail candidates for {path.stem}",
                details={"key_id": path.stem, "last_error": "no candidates"}
            )

        outcome = try_in_order(candidates, self._fetch_body)
        if not outcome.ok:
            last_error = outcome.last_error or "empty response body"
            raise ThumbnailAcquisitionError(
                f"Failed all download attempts for {candidates[0]}: {last_error}",
                details={"key_id": path.stem, "last_error": str(last_error)}
            )

        atomic_write_bytes(path, outcome.value)
        logger.debug(f"Saved thumbnail {path.name} from {outcome.winner}")

    def _fetch_body(self, url: str) -> bytes:
        response = self.session.get(url, timeout=self.timeout)
        if not 200 <= response.status_code < 300:
            raise ThumbnailAcquisitionError(
                f"HTTP {response.status_code} {response.reason}",
                details={"url": url}
            )
        return response.content


def resolve_asset_reference(asset_mount: str, path: Path | None, item: CanonicalItem) -> ResolvedItem:
    """
    Build the ResolvedItem for an acquisition outcome.

    A local file becomes "<asset_mount>/<file name>"; a failure falls back to
    the first thumbnail candidate URL.
    """
    if path is not None:
        mount = asset_mount.rstrip("/")
        reference = f"{mount}/{path.name}" if mount else path.name
        return ResolvedItem(item=item, local_asset_path=reference)

    fallback = item.thumbnail_candidates[0] if item.thumbnail_candidates else ""
    return ResolvedItem(item=item, local_asset_path=fallback, is_remote=True)


def acquire_all(
    items: Sequence[CanonicalItem],
    dest_dir: Path,
    asset_mount: str,
    force: bool = False,
    threads: int = 4,
    acquirer: ThumbnailAcquirer | None = None,
    show_progress: bool = True
) -> list[ResolvedItem]:
    """
    Acquire thumbnails for every item in parallel.

    Args:
        items: Playlist items.
        dest_dir: Thumbnail cache directory.
        asset_mount: Public path prefix for the catalog's src field.
        force: Re-download even when cached.
        threads: Maximum concurrent downloads.
        acquirer: Optional ThumbnailAcquirer (shared session, tests).
        show_progress: Display a ThumbnailProgressBar.

    Returns:
        ResolvedItems in the order of items.

    Raises:
        OSError: If the cache directory cannot be created or written.
    """
    acquirer = acquirer or ThumbnailAcquirer()
    ensure_directory(dest_dir)

    def work(item: CanonicalItem) -> tuple[Path | None, bool]:
        return acquirer.acquire_status(
            item.thumbnail_candidates, dest_dir, item.external_id, force, item.title
        )

    progress = ThumbnailProgressBar(total=len(items)) if show_progress else None

    def on_result(item: CanonicalItem, result: tuple[Path | None, bool] | Exception) -> None:
        if progress is None:
            return
        if isinstance(result, Exception):
            progress.update(success=False)
        else:
            path, cached = result
            progress.update(success=path is not None, cached=cached)

    if progress is not None:
        progress.start()
    try:
        results = run_in_parallel(work, items, num_threads=threads, on_result=on_result)
    finally:
        if progress is not None:
            progress.stop()

    resolved = []
    for item, result in zip(items, results):
        if isinstance(result, Exception):
            # Filesystem errors are not recoverable by a remote fallback
            raise result
        path, _ = result
        resolved.append(resolve_asset_reference(asset_mount, path, item))

    logger.info(
        f"Thumbnails ready: {sum(not r.is_remote for r in resolved)} local, "
        f"{sum(r.is_remote for r in resolved)} remote"
    )
    return resolved
