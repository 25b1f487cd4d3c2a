"""
Exception classes for aperture-sync.

This module defines all custom exceptions used throughout the application.
Each exception maps to one failure mode of a sync run and decides whether
the run stops or continues.

Exception Hierarchy:
    ApertureSyncError (base)
        ConfigError - Missing run parameters, config file or section
        FetchError - Every playlist listing tier failed
        ThumbnailAcquisitionError - Every thumbnail candidate failed (recovered)
        StoreError - Catalog file or required structure not usable
"""


class ApertureSyncError(Exception):
    """
    Base exception for all aperture-sync errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch all aperture-sync errors with a single
    except clause if desired.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., paths, URLs).

    Example:
        try:
            run_sync(spec, options)
        except ApertureSyncError as e:
            logger.error(f"Sync failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'playlist': Playlist reference involved in the error
                     - 'path': File path that caused the error
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(ApertureSyncError):
    """
    Raised when the run cannot be configured.

    This is a CRITICAL error that stops program execution (exit code 1).

    Common causes:
        - --playlist or --tag missing for a single run
        - Explicit config file not found, or invalid YAML syntax
        - Batch file without a 'playlists' section
        - Invalid field values (e.g., negative thread count, unknown mode)

    Example:
        raise ConfigError(
            "Missing required field 'tag' in playlist entry 2",
            details={'file_path': '/path/to/playlists.yaml', 'entry': 2}
        )
    """
    pass


class FetchError(ApertureSyncError):
    """
    Raised when no listing tier could fetch the playlist.

    This is a CRITICAL error (exit code 3). It is only raised after the
    whole fallback chain was tried; a tier that fails on its own is logged
    and the next tier is attempted.

    Attributes:
        tier_errors: List of (tier_name, exception) pairs in attempt order.

    Example:
        raise FetchError(
            "Failed to fetch playlist: all listing tiers failed",
            details={'playlist': 'PLxxxx'},
            tier_errors=[('data-api', HTTPError(...)), ('listing', DownloadError(...))]
        )
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        tier_errors: list[tuple[str, Exception]] | None = None
    ) -> None:
        """
        Initialize the fetch error with the per-tier failures.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional context.
            tier_errors: The failure of each tier that was attempted.
        """
        super().__init__(message, details)
        self.tier_errors = list(tier_errors or [])


class ThumbnailAcquisitionError(ApertureSyncError):
    """
    Raised when no thumbnail candidate could be downloaded for an item.

    This is a NON-CRITICAL error. The acquirer catches it, logs a warning
    and the catalog entry uses a remote URL instead of a local file.

    Example:
        raise ThumbnailAcquisitionError(
            "Failed all download attempts for https://i.ytimg.com/vi_webp/abc/maxresdefault.webp",
            details={'key_id': 'abc', 'last_error': 'HTTP 404 Not Found'}
        )
    """
    pass


class StoreError(ApertureSyncError):
    """
    Raised when the persisted catalog cannot be read, edited or saved.

    This is a CRITICAL error (exit code 2).

    Common causes:
        - Catalog file not found in reconcile mode
        - The named collection (e.g. 'demoItems') is not declared in the file
        - The collection is not an array literal / JSON list
        - Invalid JSON, or an unterminated literal in a TypeScript module
        - Append-only store asked to update or delete an entry

    Example:
        raise StoreError(
            "Could not find `demoItems` in src/lib/config.ts",
            details={'path': 'src/lib/config.ts', 'collection': 'demoItems'}
        )
    """
    pass
