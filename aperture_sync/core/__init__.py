"""
Core module for aperture-sync.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration and batch file loading and validation
    - logger: Logging system with multiple outputs
    - progress: Rich progress bars for thumbnails and catalog edits

Usage:
    from aperture_sync.core import (
        Config, load_config,
        setup_logging, get_logger,
        ApertureSyncError, ConfigError, StoreError
    )
"""

from aperture_sync.core.config import (
    MODE_APPEND,
    MODE_RECONCILE,
    Config,
    DownloadConfig,
    LoggingConfig,
    PlaylistSpec,
    SyncConfig,
    YouTubeConfig,
    load_config,
    load_playlist_specs,
)
from aperture_sync.core.exceptions import (
    ApertureSyncError,
    ConfigError,
    FetchError,
    StoreError,
    ThumbnailAcquisitionError,
)
from aperture_sync.core.logger import (
    format_summary_message,
    get_logger,
    log_thumbnail_failure,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Config
    "Config",
    "YouTubeConfig",
    "SyncConfig",
    "DownloadConfig",
    "LoggingConfig",
    "PlaylistSpec",
    "MODE_APPEND",
    "MODE_RECONCILE",
    "load_config",
    "load_playlist_specs",
    # Exceptions
    "ApertureSyncError",
    "ConfigError",
    "FetchError",
    "ThumbnailAcquisitionError",
    "StoreError",
    # Logging
    "setup_logging",
    "get_logger",
    "shutdown_logging",
    "log_thumbnail_failure",
    "format_summary_message",
]
