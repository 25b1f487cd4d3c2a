"""
Configuration management for aperture-sync.

This module handles loading, validating, and providing access to the
run configuration stored in aperture-sync.yaml, and the declarative
multi-playlist batch file.

The configuration file contains:
    - YouTube Data API key (optional, enables the credentialed listing tier)
    - Catalog target file, store mode and collection names
    - Thumbnail output directory and public asset mount
    - Number of parallel thumbnail downloads
    - Log directory

Configuration File Location:
    aperture-sync.yaml in the current working directory is used when
    present. Without it, defaults apply. An explicit --config path must exist.

Example aperture-sync.yaml:
    youtube:
      api_key: null            # or YOUTUBE_API_KEY in the environment / .env
      timeout: 30

    sync:
      target: "src/lib/config.ts"
      mode: reconcile          # append | reconcile
      collection: demoItems
      config_object: defaultConfig
      out_dir: "public/media/yt"
      asset_mount: "/media/yt"

    download:
      threads: 4

Example playlists.yaml (batch file):
    defaults:
      max: 200
    playlists:
      - tag: Gaming
        playlist: "https://www.youtube.com/playlist?list=PLxxxx"
      - tag: Music
        playlist: PLyyyy
        outDir: public/media/music
        forceUpdate: true
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from aperture_sync.core.exceptions import ConfigError


# Default configuration file name (looked up in current working directory)
CONFIG_FILENAME = "aperture-sync.yaml"

# Environment variable holding the YouTube Data API key
API_KEY_ENV_VAR = "YOUTUBE_API_KEY"

MODE_APPEND = "append"
MODE_RECONCILE = "reconcile"
VALID_MODES = (MODE_APPEND, MODE_RECONCILE)

DEFAULT_TARGET = "src/content/items.ts"
DEFAULT_OUT_DIR = "public/media/yt"
DEFAULT_ASSET_MOUNT = "media/yt"
DEFAULT_COLLECTION = "items"
DEFAULT_CONFIG_OBJECT = "defaultConfig"
DEFAULT_LOG_DIRECTORY = ".aperture-sync/logs"


@dataclass(frozen=True)
class YouTubeConfig:
    """
    YouTube access configuration.

    Attributes:
        api_key: YouTube Data API v3 key. None disables the credentialed
                 listing tiers; the unauthenticated listing is used alone.
        timeout: Timeout in seconds for each Data API request.
    """
    api_key: str | None
    timeout: int


@dataclass(frozen=True)
class SyncConfig:
    """
    Catalog synchronization defaults.

    Every field can be overridden from the command line, and out_dir,
    max_items and force_update per playlist in a batch file.

    Attributes:
        target: Catalog file to update (.ts/.js module or .json document).
        mode: 'append' (never mutates existing entries) or 'reconcile'
              (updates, retires and deletes entries owned by the tag).
        collection: Name of the exported item array in the target.
        config_object: Name of the exported object holding 'filters'
                       (reconcile mode only).
        out_dir: Directory where thumbnails are cached.
        asset_mount: Public path prefix written into the entries' src.
        max_items: Maximum number of playlist items to fetch, None for all.
        force_update: Re-download thumbnails even if cached.
    """
    target: Path
    mode: str
    collection: str
    config_object: str
    out_dir: Path
    asset_mount: str
    max_items: int | None
    force_update: bool


@dataclass(frozen=True)
class DownloadConfig:
    """
    Thumbnail download behavior configuration.

    Attributes:
        threads: Number of parallel thumbnail downloads. Default: 4.
        timeout: Timeout in seconds for each thumbnail request.
    """
    threads: int
    timeout: int


@dataclass(frozen=True)
class LoggingConfig:
    """
    Logging configuration.

    Attributes:
        directory: Directory for log files, None for console-only logging.
    """
    directory: Path | None


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    This is the main configuration object that aggregates all configuration
    sections. It is created by load_config() and should be treated as
    immutable (frozen dataclass).

    Example:
        config = load_config()
        print(f"Catalog: {config.sync.target} ({config.sync.mode})")
        print(f"Using {config.download.threads} threads")
    """
    youtube: YouTubeConfig
    sync: SyncConfig
    download: DownloadConfig
    logging: LoggingConfig


@dataclass(frozen=True)
class PlaylistSpec:
    """
    One playlist to synchronize.

    Unset optional fields (None) fall back to the run-wide defaults.

    Attributes:
        tag: Ownership tag of the entries created by this playlist.
        playlist: Playlist id or URL.
        out_dir: Thumbnail directory override.
        max_items: Item cap override.
        force_update: Thumbnail refresh override.
    """
    tag: str
    playlist: str
    out_dir: Path | None = None
    max_items: int | None = None
    force_update: bool | None = None


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from aperture-sync.yaml.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for aperture-sync.yaml in the current
                     working directory and uses defaults when absent.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If an explicit config file is not found, the file has
                     invalid YAML syntax, a section is not a dictionary, or a
                     field has an invalid value.

    Behavior:
        1. Load .env into the environment (python-dotenv)
        2. Locate and parse the YAML file (if any)
        3. Parse each section with defaults applied
        4. Let YOUTUBE_API_KEY fill in a missing api_key
    """
    load_dotenv()

    raw_config: dict[str, Any] = {}
    if config_path is None:
        default_path = Path.cwd() / CONFIG_FILENAME
        if default_path.exists():
            raw_config = _read_yaml_mapping(default_path)
    else:
        if not config_path.exists():
            raise ConfigError(
                f"Configuration file not found: {config_path}",
                details={"file_path": str(config_path)}
            )
        raw_config = _read_yaml_mapping(config_path)

    for section in ("youtube", "sync", "download", "logging"):
        value = raw_config.get(section)
        if value is not None and not isinstance(value, dict):
            raise ConfigError(
                f"Section '{section}' must be a dictionary",
                details={"section": section}
            )

    return Config(
        youtube=_parse_youtube_config(raw_config.get("youtube") or {}),
        sync=_parse_sync_config(raw_config.get("sync") or {}),
        download=_parse_download_config(raw_config.get("download") or {}),
        logging=_parse_logging_config(raw_config.get("logging") or {}),
    )


def load_playlist_specs(batch_path: Path) -> list[PlaylistSpec]:
    """
    Load the declarative multi-playlist batch file.

    The optional 'defaults' mapping fills the optional fields (outDir, max,
    forceUpdate) of entries that leave them unset. Keys are accepted in
    camelCase (outDir, forceUpdate) or snake_case (out_dir, force_update).

    Args:
        batch_path: Path to the YAML batch file.

    Returns:
        List of PlaylistSpec in file order.

    Raises:
        ConfigError: If the file is missing, is not valid YAML, has no
                     'playlists' list, or an entry lacks tag/playlist.
    """
    if not batch_path.exists():
        raise ConfigError(
            f"Playlist batch file not found: {batch_path}",
            details={"file_path": str(batch_path)}
        )

    raw = _read_yaml_mapping(batch_path)

    entries = raw.get("playlists")
    if not isinstance(entries, list) or not entries:
        raise ConfigError(
            f"Missing required section: 'playlists' in {batch_path}",
            details={"file_path": str(batch_path), "missing_section": "playlists"}
        )

    defaults = raw.get("defaults") or {}
    if not isinstance(defaults, dict):
        raise ConfigError(
            "Section 'defaults' must be a dictionary",
            details={"file_path": str(batch_path), "section": "defaults"}
        )
    shared = _parse_overrides(defaults, "defaults")

    specs = []
    for index, entry in enumerate(entries, 1):
        where = f"playlists[{index}]"
        if not isinstance(entry, dict):
            raise ConfigError(
                f"Entry {where} must be a dictionary",
                details={"file_path": str(batch_path), "entry": index}
            )

        tag = entry.get("tag")
        playlist = entry.get("playlist")
        if not isinstance(tag, str) or not tag.strip():
            raise ConfigError(
                f"'{where}.tag' must be a non-empty string",
                details={"file_path": str(batch_path), "field": f"{where}.tag"}
            )
        if not isinstance(playlist, str) or not playlist.strip():
            raise ConfigError(
                f"'{where}.playlist' must be a non-empty string",
                details={"file_path": str(batch_path), "field": f"{where}.playlist"}
            )

        overrides = _parse_overrides(entry, where)
        for key, value in shared.items():
            if overrides.get(key) is None:
                overrides[key] = value

        specs.append(PlaylistSpec(tag=tag.strip(), playlist=playlist.strip(), **overrides))

    return specs


def _read_yaml_mapping(path: Path) -> dict[str, Any]:
    """
    Read a YAML file that must contain a dictionary (or be empty).

    Raises:
        ConfigError: On read failure, YAML syntax error or non-mapping content.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(path), "original_error": str(e)}
        ) from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in {path}: {e}",
            details={"file_path": str(path), "original_error": str(e)}
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"{path} must contain a YAML dictionary",
            details={"file_path": str(path)}
        )
    return data


def _parse_overrides(section: dict[str, Any], where: str) -> dict[str, Any]:
    """Extract out_dir / max_items / force_update from a batch mapping."""
    out_dir = _first_present(section, "outDir", "out_dir")
    max_items = section.get("max")
    force_update = _first_present(section, "forceUpdate", "force_update")

    if out_dir is not None:
        if not isinstance(out_dir, str) or not out_dir.strip():
            raise ConfigError(
                f"'{where}.outDir' must be a non-empty string",
                details={"field": f"{where}.outDir"}
            )
        out_dir = Path(out_dir.strip()).expanduser()

    if max_items is not None:
        max_items = _positive_int(max_items, f"{where}.max")

    if force_update is not None and not isinstance(force_update, bool):
        raise ConfigError(
            f"'{where}.forceUpdate' must be true or false",
            details={"field": f"{where}.forceUpdate", "value": force_update}
        )

    return {"out_dir": out_dir, "max_items": max_items, "force_update": force_update}


def _first_present(section: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if section.get(key) is not None:
            return section[key]
    return None


def _positive_int(value: Any, field_name: str) -> int:
    # bool is an int subclass; "max: true" is a typo, not 1
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(
            f"'{field_name}' must be a positive integer",
            details={"field": field_name, "value": value}
        )
    return value


def _non_empty_str(section: dict[str, Any], key: str, default: str, field_name: str) -> str:
    value = section.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(
            f"'{field_name}' must be a non-empty string",
            details={"field": field_name}
        )
    return value.strip()


def _parse_youtube_config(youtube_section: dict[str, Any]) -> YouTubeConfig:
    """
    Parse the youtube section.

    The API key is optional; YOUTUBE_API_KEY is used when the file
    leaves it empty.
    """
    api_key = youtube_section.get("api_key")
    if api_key is not None and not isinstance(api_key, str):
        raise ConfigError(
            "'youtube.api_key' must be a string or null",
            details={"field": "youtube.api_key"}
        )
    if not api_key or not api_key.strip():
        api_key = os.getenv(API_KEY_ENV_VAR) or None

    timeout = _positive_int(youtube_section.get("timeout", 30), "youtube.timeout")

    return YouTubeConfig(api_key=api_key.strip() if api_key else None, timeout=timeout)


def _parse_sync_config(sync_section: dict[str, Any]) -> SyncConfig:
    """
    Parse the sync section, applying defaults for every missing field.

    Raises:
        ConfigError: If mode is not 'append' or 'reconcile', or a value
                     has the wrong type.
    """
    mode = sync_section.get("mode", MODE_APPEND)
    if mode not in VALID_MODES:
        raise ConfigError(
            f"'sync.mode' must be one of {', '.join(VALID_MODES)}",
            details={"field": "sync.mode", "value": mode}
        )

    max_items = sync_section.get("max")
    if max_items is not None:
        max_items = _positive_int(max_items, "sync.max")

    force_update = sync_section.get("force_update", False)
    if not isinstance(force_update, bool):
        raise ConfigError(
            "'sync.force_update' must be true or false",
            details={"field": "sync.force_update", "value": force_update}
        )

    target = _non_empty_str(sync_section, "target", DEFAULT_TARGET, "sync.target")
    out_dir = _non_empty_str(sync_section, "out_dir", DEFAULT_OUT_DIR, "sync.out_dir")

    return SyncConfig(
        target=Path(target).expanduser(),
        mode=mode,
        collection=_non_empty_str(sync_section, "collection", DEFAULT_COLLECTION, "sync.collection"),
        config_object=_non_empty_str(
            sync_section, "config_object", DEFAULT_CONFIG_OBJECT, "sync.config_object"
        ),
        out_dir=Path(out_dir).expanduser(),
        asset_mount=_non_empty_str(sync_section, "asset_mount", DEFAULT_ASSET_MOUNT, "sync.asset_mount"),
        max_items=max_items,
        force_update=force_update,
    )


def _parse_download_config(download_section: dict[str, Any]) -> DownloadConfig:
    """
    Parse the download section.

    Default threads: 4. Default timeout: 30 seconds.
    """
    return DownloadConfig(
        threads=_positive_int(download_section.get("threads", 4), "download.threads"),
        timeout=_positive_int(download_section.get("timeout", 30), "download.timeout"),
    )


def _parse_logging_config(logging_section: dict[str, Any]) -> LoggingConfig:
    """
    Parse the logging section.

    'directory: null' disables log files.
    """
    if "directory" in logging_section and logging_section["directory"] is None:
        return LoggingConfig(directory=None)

    directory = _non_empty_str(
        logging_section, "directory", DEFAULT_LOG_DIRECTORY, "logging.directory"
    )
    return LoggingConfig(directory=Path(directory).expanduser())
