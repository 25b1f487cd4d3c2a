"""
Thumbnail cache for aperture-sync.

Usage:
    from aperture_sync.media import acquire_all

    resolved = acquire_all(items, Path("public/media/yt"), "media/yt", threads=4)
"""

from aperture_sync.media.acquirer import (
    ALLOWED_EXTENSIONS,
    ThumbnailAcquirer,
    acquire_all,
    purge_cached,
    resolve_asset_reference,
    sniff_extension,
)

__all__ = [
    "ALLOWED_EXTENSIONS",
    "ThumbnailAcquirer",
    "acquire_all",
    "purge_cached",
    "resolve_asset_reference",
    "sniff_extension",
]
