"""
Logging setup for aperture-sync.

One run writes to up to four places:
    - the console, through tqdm.write() so progress bars are not torn
    - log_full_<ts>.log with every record from DEBUG up
    - log_errors_<ts>.log with ERROR and CRITICAL only
    - thumbnail_failures_<ts>.log listing items that kept a remote thumbnail

The three files live in logging.directory (default .aperture-sync/logs).
Setting the directory to null keeps the console handler only.

Usage:
    from aperture_sync.core.logger import setup_logging, get_logger

    setup_logging(Path(".aperture-sync/logs"), verbose=False)
    logger = get_logger(__name__)
    logger.info("Fetching playlist")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


LOG_FULL_FILENAME = "log_full"
LOG_ERRORS_FILENAME = "log_errors"
THUMBNAIL_FAILURES_FILENAME = "thumbnail_failures"

FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Extra fields attached by log_thumbnail_failure()
FAILURE_KEY_FIELD = "thumbnail_failed_key"
FAILURE_TITLE_FIELD = "thumbnail_failed_title"
FAILURE_FALLBACK_FIELD = "thumbnail_failed_fallback"
FAILURE_REASON_FIELD = "thumbnail_failed_reason"

RESET = "\033[0m"
ANSI = {
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "cyan": "\033[36m",
    "bold": "\033[1m",
}


def _paint(text: object, *styles: str) -> str:
    return "".join(ANSI[s] for s in styles) + str(text) + RESET


class ColoredConsoleFormatter(logging.Formatter):
    """Prefix each console line with its level name in color."""

    LEVEL_STYLES = {
        logging.DEBUG: ("blue",),
        logging.INFO: ("green",),
        logging.WARNING: ("yellow",),
        logging.ERROR: ("red",),
        logging.CRITICAL: ("bold", "red"),
    }

    def format(self, record: logging.LogRecord) -> str:
        styles = self.LEVEL_STYLES.get(record.levelno, ())
        level = _paint(record.levelname, *styles) if styles else record.levelname
        line = f"{level}: {record.getMessage()}"
        if record.exc_info and record.levelno >= logging.ERROR:
            line += "\n" + self.formatException(record.exc_info)
        return line


class TqdmLoggingHandler(logging.Handler):
    """
    Console handler that prints above active progress bars.

    The stream is looked up at emit time, so redirected stderr (tests,
    CliRunner) is honored.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        super().__init__()
        self._stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            tqdm.write(self.format(record), file=self._stream or sys.stderr)
        except Exception:
            self.handleError(record)


class ThumbnailFailureHandler(logging.Handler):
    """
    Writes the thumbnail fallback report.

    Only records produced by log_thumbnail_failure() are kept. Each becomes
    one block:

        yt:dQw4w9WgXcQ - Video Title
        fallback: https://i.ytimg.com/vi_webp/dQw4w9WgXcQ/maxresdefault.webp
        reason: HTTP 404 Not Found

    The report file is truncated when the handler is created.
    """

    def __init__(self, report_path: Path) -> None:
        super().__init__()
        self.report_path = report_path
        self._report: TextIO | None = open(report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        if self._report is None or not hasattr(record, FAILURE_KEY_FIELD):
            return
        block = (
            f"yt:{getattr(record, FAILURE_KEY_FIELD)} - {getattr(record, FAILURE_TITLE_FIELD, '')}\n"
            f"fallback: {getattr(record, FAILURE_FALLBACK_FIELD, '')}\n"
            f"reason: {getattr(record, FAILURE_REASON_FIELD, '')}\n\n"
        )
        try:
            with self.lock:
                self._report.write(block)
                self._report.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        with self.lock:
            if self._report is not None:
                self._report.close()
                self._report = None
        super().close()


class MinimumLevelFilter(logging.Filter):
    """Let through records at or above a level, whatever the handler level."""

    def __init__(self, level: int) -> None:
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= self.level


def _file_handler(path: Path, level_filter: logging.Filter | None = None) -> logging.FileHandler:
    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    if level_filter is not None:
        handler.addFilter(level_filter)
    return handler


def setup_logging(log_dir: Path | None, verbose: bool = False) -> None:
    """
    Install the run's handlers on the root logger.

    Call once, from the main thread, after the configuration is loaded and
    before worker threads start. Handlers left by an earlier call are
    replaced.

    Args:
        log_dir: Directory for the per-run log files (created if missing),
                 or None for console output only.
        verbose: Show DEBUG records on the console.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers.clear()

    console = TqdmLoggingHandler()
    console.setLevel(logging.DEBUG if verbose else logging.INFO)
    console.setFormatter(ColoredConsoleFormatter())
    root.addHandler(console)

    # Connection pool chatter is only useful in the full log
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    if log_dir is None:
        return

    log_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    root.addHandler(_file_handler(log_dir / f"{LOG_FULL_FILENAME}_{stamp}.log"))
    root.addHandler(_file_handler(
        log_dir / f"{LOG_ERRORS_FILENAME}_{stamp}.log", MinimumLevelFilter(logging.ERROR)
    ))
    root.addHandler(ThumbnailFailureHandler(log_dir / f"{THUMBNAIL_FAILURES_FILENAME}_{stamp}.log"))


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module; pass __name__."""
    return logging.getLogger(name)


def format_summary_message(
    tag: str,
    updated: int,
    retired: int,
    deleted: int,
    inserted: int
) -> str:
    """Build the colored one-line result of a playlist sync."""
    return (
        f"Done [{_paint(tag, 'cyan')}]. "
        f"Updated: {updated}, "
        f"Removed tag: {_paint(retired, 'yellow')}, "
        f"Deleted: {_paint(deleted, 'red')}, "
        f"Added: {_paint(inserted, 'green')}"
    )


def log_thumbnail_failure(
    logger: logging.Logger,
    key_id: str,
    title: str,
    fallback_url: str,
    error_message: str
) -> None:
    """
    Warn that an item keeps a remote thumbnail.

    The record also carries the fields ThumbnailFailureHandler needs for
    the report file.

    Args:
        logger: Logger of the calling module.
        key_id: Video id (the thumbnail file stem).
        title: Video title.
        fallback_url: Remote URL written to the catalog instead.
        error_message: Why the last candidate failed.
    """
    logger.warning(
        f"Using remote thumbnail due to download error for {key_id}: {error_message}",
        extra={
            FAILURE_KEY_FIELD: key_id,
            FAILURE_TITLE_FIELD: title,
            FAILURE_FALLBACK_FIELD: fallback_url,
            FAILURE_REASON_FIELD: error_message,
        }
    )


def shutdown_logging() -> None:
    """Flush, close and detach every root handler. Safe to call twice."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        try:
            handler.flush()
        finally:
            handler.close()
