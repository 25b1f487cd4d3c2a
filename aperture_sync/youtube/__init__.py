"""
YouTube source adapter for aperture-sync.

This module fetches playlist membership and normalizes it:
    - models: CanonicalItem, ResolvedItem, thumbnail candidate patterns
    - client: YouTube Data API v3 playlistItems client
    - fetcher: ordered listing tiers (Data API, yt-dlp, best effort)

Usage:
    from aperture_sync.youtube import fetch_playlist_items

    items = fetch_playlist_items("PLxxxx", max_items=50)
"""

from aperture_sync.youtube.client import YouTubeDataClient
from aperture_sync.youtube.fetcher import fetch_playlist_items, list_with_ytdlp
from aperture_sync.youtube.models import (
    CanonicalItem,
    ResolvedItem,
    build_thumbnail_candidates,
)

__all__ = [
    "CanonicalItem",
    "ResolvedItem",
    "build_thumbnail_candidates",
    "YouTubeDataClient",
    "fetch_playlist_items",
    "list_with_ytdlp",
]
