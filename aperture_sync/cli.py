"""
Command-line interface for aperture-sync.

This module implements the CLI using Click; rich-click is used for the
help colors.

Commands:
    aperture-sync --playlist <url-or-id> --tag <tag>    Sync one playlist
    aperture-sync --batch playlists.yaml                Sync every playlist in a file

Usage:
    # Append new videos to a site's item module, cache thumbnails
    aperture-sync -p "https://www.youtube.com/playlist?list=PL..." -t Gaming \\
        --target src/content/items.ts --outDir public/media/yt --max 200

    # Full reconcile of the theme demo items (updates, removals, filters)
    aperture-sync -p PL... -t Demo --mode reconcile \\
        --target src/lib/config.ts --collection demoItems --config-object defaultConfig

    # Re-download every thumbnail
    aperture-sync -p PL... -t Gaming --forceUpdate

Exit Codes:
    0    success, or the playlist had nothing to sync
    1    configuration error (missing --playlist/--tag, bad config file)
    2    catalog error (file or collection missing, unparsable, unwritable),
         also Click's own usage errors
    3    every playlist listing tier failed
    4    any other aperture-sync error
    130  interrupted
"""

import sys
from pathlib import Path
from typing import Optional

import rich_click as click

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100
click.rich_click.OPTION_GROUPS = {
    "aperture-sync": [
        {
            "name": "Playlist",
            "options": ["--playlist", "--tag", "--max", "--batch"],
        },
        {
            "name": "Catalog",
            "options": ["--target", "--mode", "--collection", "--config-object"],
        },
        {
            "name": "Thumbnails",
            "options": ["--outDir", "--force", "--forceUpdate", "--threads"],
        },
        {
            "name": "Advanced Options",
            "options": ["--config", "--api-key", "--verbose"],
        },
        {
            "name": "Info",
            "options": ["--version", "--help"],
        },
    ],
}

from aperture_sync import __version__
from aperture_sync.core import (
    ApertureSyncError,
    ConfigError,
    FetchError,
    PlaylistSpec,
    StoreError,
    get_logger,
    load_config,
    load_playlist_specs,
    setup_logging,
    shutdown_logging,
)
from aperture_sync.core.config import VALID_MODES
from aperture_sync.sync import SyncOptions, SyncResult, run_all

logger = get_logger(__name__)


@click.command(name="aperture-sync")
@click.option(
    "--playlist", "-p",
    type=str,
    default=None,
    metavar="<url-or-id>",
    help="YouTube playlist URL or id"
)
@click.option(
    "--tag", "-t",
    type=str,
    default=None,
    metavar="<tag>",
    help="Ownership tag of the synced items (also a gallery filter)"
)
@click.option(
    "--max", "-m", "max_items",
    type=click.IntRange(min=1),
    default=None,
    metavar="<n>",
    help="Fetch at most n playlist items"
)
@click.option(
    "--outDir", "-o", "out_dir",
    type=click.Path(path_type=Path),
    default=None,
    metavar="<dir>",
    help="Thumbnail directory [default: public/media/yt]"
)
@click.option(
    "--target",
    type=click.Path(path_type=Path),
    default=None,
    metavar="<file>",
    help="Catalog file (.ts/.js module or .json)"
)
@click.option(
    "--mode",
    type=click.Choice(VALID_MODES),
    default=None,
    help="append: only add new items. reconcile: update, untag and delete too"
)
@click.option(
    "--collection",
    type=str,
    default=None,
    metavar="<name>",
    help="Name of the item array in the catalog"
)
@click.option(
    "--config-object", "config_object",
    type=str,
    default=None,
    metavar="<name>",
    help="Name of the object holding 'filters' (reconcile mode)"
)
@click.option(
    "--force", "-f",
    is_flag=True,
    help="Re-download thumbnails even if cached"
)
@click.option(
    "--forceUpdate", "force_update",
    is_flag=True,
    help="Same as --force"
)
@click.option(
    "--batch",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    metavar="<playlists.yaml>",
    help="Sync every playlist listed in a YAML file"
)
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<aperture-sync.yaml>",
    help="Configuration file [default: ./aperture-sync.yaml if present]"
)
@click.option(
    "--api-key",
    type=str,
    default=None,
    metavar="<key>",
    help="YouTube Data API key (or YOUTUBE_API_KEY)"
)
@click.option(
    "--threads",
    type=click.IntRange(min=1),
    default=None,
    metavar="<n>",
    help="Parallel thumbnail downloads"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Show debug messages"
)
@click.option(
    "--version",
    is_flag=True,
    help="Show version and exit."
)
@click.pass_context
def cli(
    ctx: click.Context,
    playlist: Optional[str],
    tag: Optional[str],
    max_items: Optional[int],
    out_dir: Optional[Path],
    target: Optional[Path],
    mode: Optional[str],
    collection: Optional[str],
    config_object: Optional[str],
    force: bool,
    force_update: bool,
    batch: Optional[Path],
    config_path: Optional[Path],
    api_key: Optional[str],
    threads: Optional[int],
    verbose: bool,
    version: bool
) -> None:
    """
    aperture-sync: Sync YouTube playlists into an aperture gallery.

    Fetches a playlist, caches its thumbnails locally and merges the videos
    into the site's item catalog. Items are owned by a tag: a sync only
    ever changes items carrying its tag.

    \b
    BASIC USAGE:
        aperture-sync -p "https://www.youtube.com/playlist?list=PL..." -t Gaming
        aperture-sync -p PL... -t Music --max 50

    \b
    RECONCILE MODE:
        aperture-sync -p PL... -t Demo --mode reconcile \\
            --target src/lib/config.ts --collection demoItems

        Videos removed from the playlist lose the tag; items left without
        any tag are deleted. The tag is added to the gallery filters.

    \b
    BATCH:
        aperture-sync --batch playlists.yaml
    """
    if version:
        click.echo(f"aperture-sync {__version__}")
        ctx.exit(0)

    if batch and (playlist or tag):
        raise click.UsageError("--batch cannot be combined with --playlist or --tag")

    _run_sync({
        "playlist": playlist,
        "tag": tag,
        "batch": batch,
        "config_path": config_path,
        "verbose": verbose,
        "overrides": {
            "target": target,
            "mode": mode,
            "collection": collection,
            "config_object": config_object,
            "out_dir": out_dir,
            "max_items": max_items,
            "force_update": True if (force or force_update) else None,
            "threads": threads,
            "api_key": api_key,
        },
    })


def _run_sync(options: dict) -> None:
    """
    Load the configuration, run every playlist and print the summary.

    Every failure is turned into its exit code here; logging is shut down
    on the way out whatever happens.

    Args:
        options: Parsed CLI values; 'overrides' holds the SyncOptions fields
                 given on the command line (None when unset).

    Raises:
        SystemExit: With the exit code of the failure.
    """
    try:
        config = load_config(options["config_path"])

        setup_logging(config.logging.directory, verbose=options["verbose"])
        logger.debug(f"aperture-sync {__version__} starting")

        specs = _build_specs(options)
        sync_options = SyncOptions.from_config(config, **options["overrides"])
        logger.info(f"Catalog: {sync_options.target} ({sync_options.mode})")

        results = run_all(specs, sync_options)
        _print_final_stats(results)

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    except StoreError as e:
        click.echo(f"Catalog error: {e.message}", err=True)
        logger.error(f"Catalog error: {e.message}", exc_info=True)
        sys.exit(2)

    except FetchError as e:
        click.echo(f"Fetch error: {e.message}", err=True)
        for tier, error in e.tier_errors:
            click.echo(f"  {tier}: {error}", err=True)
        logger.error(f"Fetch error: {e.message}")
        sys.exit(3)

    except ApertureSyncError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        sys.exit(4)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        sys.exit(130)

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error")
        sys.exit(1)

    finally:
        shutdown_logging()


def _build_specs(options: dict) -> list[PlaylistSpec]:
    """
    Return the playlists to sync.

    Raises:
        ConfigError: If a single run lacks --playlist or --tag, or the
                     batch file is invalid.
    """
    if options["batch"] is not None:
        specs = load_playlist_specs(options["batch"])
        logger.info(f"Loaded {len(specs)} playlists from {options['batch']}")
        return specs

    if not options["playlist"]:
        raise ConfigError("Missing --playlist <url-or-id>")
    if not options["tag"]:
        raise ConfigError("Missing --tag <string>")

    return [PlaylistSpec(tag=options["tag"], playlist=options["playlist"])]


def _print_final_stats(results: list[SyncResult]) -> None:
    """Print one summary line per playlist."""
    for result in results:
        prefix = f"[{result.spec.tag}] " if len(results) > 1 else ""
        if result.nothing_to_sync:
            click.echo(f"{prefix}No items returned from the playlist. Nothing to sync.")
            continue
        report = result.report
        click.echo(
            f"{prefix}Done. Updated: {report.updated}, Removed tag: {report.retired}, "
            f"Deleted: {report.deleted}, Added: {report.inserted}"
        )
        if result.remote_thumbnails:
            click.echo(f"{prefix}{result.remote_thumbnails} thumbnail(s) left as remote URLs")


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `aperture-sync` from the command line.
    """
    cli()


if __name__ == "__main__":
    main()
