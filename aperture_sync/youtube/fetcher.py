"""
Playlist fetcher for aperture-sync.

This module fetches the current membership of a YouTube playlist through
an ordered chain of listing tiers. The first tier that returns at least one
item wins. A tier that raises hands over to the next; so does an empty
Data API answer. A listing that completes with no items is final: the
playlist is empty and the later tiers are not tried.

Tier Order:
    1. data-api        YouTube Data API v3 (only with an API key)
    2. listing         yt-dlp flat playlist listing, all pages
    3. data-api-retry  Data API once more (only with an API key)
    4. best-effort     yt-dlp, first page only, broken entries ignored

Outcome:
    - Some tier returned items        -> those items
    - Listing completed with no items -> [] ("nothing to sync")
    - No items, some tier completed   -> []
    - Every tier raised               -> FetchError with every tier's error

max_items is passed to each tier on its own; it is not re-applied across
tiers.

Usage:
    from aperture_sync.youtube.fetcher import fetch_playlist_items

    items = fetch_playlist_items("https://www.youtube.com/playlist?list=PLxxxx",
                                 max_items=200, api_key=config.youtube.api_key)
"""

from typing import Any, Callable, Iterable

import requests
from yt_dlp import YoutubeDL

from aperture_sync.core.exceptions import FetchError
from aperture_sync.core.logger import get_logger
from aperture_sync.utils import extract_playlist_id, try_in_order
from aperture_sync.youtube.client import YouTubeDataClient
from aperture_sync.youtube.models import CanonicalItem


logger = get_logger(__name__)


PLAYLIST_URL_TEMPLATE = "https://www.youtube.com/playlist?list={playlist_id}"

# Page bound of the best-effort tier (one listing page)
BEST_EFFORT_LIMIT = 100

TIER_DATA_API = "data-api"
TIER_LISTING = "listing"
TIER_DATA_API_RETRY = "data-api-retry"
TIER_BEST_EFFORT = "best-effort"


class YtDlpQuietLogger:
    """
    Logger handed to yt-dlp so its output goes to our debug log.

    yt-dlp ignores quiet=True for certain errors and prints directly to
    stderr. Routing everything through this object keeps the console clean;
    the failure itself surfaces as the tier's exception.
    """

    def debug(self, msg: str) -> None:
        logger.debug(f"yt-dlp: {msg}")

    def info(self, msg: str) -> None:
        logger.debug(f"yt-dlp: {msg}")

    def warning(self, msg: str) -> None:
        logger.debug(f"yt-dlp warning: {msg}")

    def error(self, msg: str) -> None:
        logger.debug(f"yt-dlp error: {msg}")


def _normalize(items: Iterable[CanonicalItem | None], max_items: int | None) -> list[CanonicalItem]:
    """
    Drop placeholder items and duplicate ids, then apply the cap.

    Duplicates keep their first occurrence (playlist order).
    """
    seen: set[str] = set()
    result: list[CanonicalItem] = []
    for item in items:
        if item is None or not item.external_id or item.external_id in seen:
            continue
        seen.add(item.external_id)
        result.append(item)
        if max_items is not None and len(result) >= max_items:
            break
    return result


def _get_yt_dlp_options(playlist_end: int | None, ignore_errors: bool) -> dict[str, Any]:
    """
    Build yt-dlp options for a flat (metadata only) playlist listing.

    Args:
        playlist_end: Last playlist index to list, None for all.
        ignore_errors: Skip entries yt-dlp cannot extract instead of failing.
    """
    options: dict[str, Any] = {
        # List entries without resolving every video page
        "extract_flat": "in_playlist",
        "skip_download": True,

        # Quiet mode (we handle our own logging)
        "quiet": True,
        "no_warnings": True,
        "noprogress": True,
        "logger": YtDlpQuietLogger(),

        "ignoreerrors": ignore_errors,
    }
    if playlist_end is not None:
        options["playlistend"] = playlist_end
    return options


def list_with_ytdlp(
    playlist_url: str,
    max_items: int | None = None,
    ignore_errors: bool = False
) -> list[CanonicalItem]:
    """
    List a playlist through yt-dlp's flat extraction.

    Args:
        playlist_url: Playlist URL.
        max_items: Stop after this many entries, None for all.
        ignore_errors: Best-effort mode; broken entries are skipped.

    Returns:
        CanonicalItems in playlist order.

    Raises:
        yt_dlp.utils.DownloadError: If extraction fails.
        ValueError: If yt-dlp returns no playlist info.
    """
    with YoutubeDL(_get_yt_dlp_options(max_items, ignore_errors)) as ydl:
        info = ydl.extract_info(playlist_url, download=False)

    if not info:
        raise ValueError(f"yt-dlp returned no info for {playlist_url}")

    entries = info.get("entries") or []
    return _normalize((CanonicalItem.from_ytdlp_entry(e) for e in entries), max_items)


def build_tiers(
    playlist_ref: str,
    max_items: int | None = None,
    api_key: str | None = None,
    timeout: int = 30,
    session: requests.Session | None = None
) -> list[tuple[str, Callable[[], list[CanonicalItem]]]]:
    """
    Build the ordered (name, fetch) tier list for a playlist.

    The Data API tiers are only included when api_key is set.
    """
    playlist_id = extract_playlist_id(playlist_ref)
    playlist_url = PLAYLIST_URL_TEMPLATE.format(playlist_id=playlist_id)

    tiers: list[tuple[str, Callable[[], list[CanonicalItem]]]] = []

    def data_api() -> list[CanonicalItem]:
        client = YouTubeDataClient(api_key, timeout=timeout, session=session)
        return _normalize(client.list_playlist_items(playlist_id, max_items), max_items)

    def listing() -> list[CanonicalItem]:
        return list_with_ytdlp(playlist_url, max_items)

    def best_effort() -> list[CanonicalItem]:
        limit = BEST_EFFORT_LIMIT if max_items is None else min(max_items, BEST_EFFORT_LIMIT)
        return list_with_ytdlp(playlist_url, limit, ignore_errors=True)

    if api_key:
        tiers.append((TIER_DATA_API, data_api))
    tiers.append((TIER_LISTING, listing))
    if api_key:
        tiers.append((TIER_DATA_API_RETRY, data_api))
    tiers.append((TIER_BEST_EFFORT, best_effort))

    return tiers


def fetch_playlist_items(
    playlist_ref: str,
    max_items: int | None = None,
    api_key: str | None = None,
    timeout: int = 30,
    session: requests.Session | None = None
) -> list[CanonicalItem]:
    """
    Fetch playlist membership, falling back through the listing tiers.

    Args:
        playlist_ref: Playlist id or any URL with a 'list' query parameter.
        max_items: Maximum number of items, None for all.
        api_key: YouTube Data API key. Enables the credentialed tiers.
        timeout: Data API request timeout in seconds.
        session: Optional requests.Session for the Data API.

    Returns:
        CanonicalItems in playlist order, possibly empty.

    Raises:
        FetchError: If every tier raised.
    """
    tiers = build_tiers(playlist_ref, max_items, api_key, timeout, session)
    fetchers = dict(tiers)

    def attempt(name: str) -> tuple[str, list[CanonicalItem]]:
        logger.debug(f"Fetching playlist via {name}")
        items = fetchers[name]()
        if not items:
            logger.info(f"Tier '{name}' returned no items")
        return name, items

    def settles(result: tuple[str, list[CanonicalItem]]) -> bool:
        name, items = result
        return bool(items) or name == TIER_LISTING

    outcome = try_in_order([name for name, _ in tiers], attempt, accept=settles)

    for name, error in outcome.errors:
        logger.warning(f"Tier '{name}' failed: {error}")

    if outcome.ok:
        _, items = outcome.value
        logger.info(f"Fetched {len(items)} items via {outcome.winner}")
        return items

    if outcome.completed:
        return []

    raise FetchError(
        f"Failed to fetch playlist: all listing tiers failed ({outcome.last_error})",
        details={"playlist": playlist_ref},
        tier_errors=outcome.errors
    )
