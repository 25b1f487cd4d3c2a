"""
aperture-sync: Sync YouTube playlists into an aperture gallery catalog.

This package keeps a site's gallery items in step with YouTube playlists:
it fetches playlist membership, caches the thumbnails locally and merges the
videos into the catalog file under a tag-based ownership rule.

Architecture:
    A sync runs one playlist through four stages:

    FETCH (youtube/): List the playlist
        - YouTube Data API (with an API key)
        - yt-dlp flat listing
        - Data API retry, then a best-effort single page

    THUMBNAILS (media/): Cache thumbnails
        - Try i.ytimg.com candidates in quality order
        - Skip cached files unless forced
        - Fall back to a remote URL when every candidate fails

    RECONCILE (catalog/): Merge into the catalog
        - append: add unknown videos only
        - reconcile: update tagged items, untag or delete removed ones,
          insert new ones, add the tag to the filter list

    COMMIT (catalog/): Save the catalog file atomically

Modules:
    core/       - Configuration, logging, progress bars, exceptions
    youtube/    - Playlist listing and item models
    media/      - Thumbnail cache
    catalog/    - Catalog documents, stores and reconciliation
    sync/       - Single and batch orchestration
    utils/      - Fallback chains, parallel map, atomic writes
    cli.py      - Command-line interface

Usage:
    Command Line:
        aperture-sync --playlist "https://www.youtube.com/playlist?list=..." --tag Gaming
        aperture-sync --batch playlists.yaml

    Python API:
        from aperture_sync.core import load_config, setup_logging
        from aperture_sync.sync import SyncOptions, run_sync
        from aperture_sync.core import PlaylistSpec

        config = load_config()
        setup_logging(config.logging.directory)
        result = run_sync(PlaylistSpec(tag="Gaming", playlist="PL..."),
                          SyncOptions.from_config(config))

Dependencies:
    - requests: YouTube Data API and thumbnail downloads
    - yt-dlp: Playlist listing without an API key
    - click / rich-click: CLI
    - rich: Progress bars
    - tqdm: Progress-safe console logging
    - pyyaml: Configuration and batch files
    - python-dotenv: YOUTUBE_API_KEY from .env
"""

__version__ = "0.1.0"
__author__ = "aperture-sync"
__license__ = "MIT"
