"""Tests for logging setup and the thumbnail failure report"""

import logging

from aperture_sync.core.logger import (
    format_summary_message,
    get_logger,
    log_thumbnail_failure,
    setup_logging,
    shutdown_logging,
)
from aperture_sync.core.progress import CatalogProgressBar, ThumbnailProgressBar


class TestLogging:
    """Test log files and reports"""

    def test_log_files_created(self, temp_dir):
        """Test setup_logging creates the full, error and thumbnail logs"""
        log_dir = temp_dir / "logs"

        setup_logging(log_dir)
        get_logger("aperture_sync.test").error("boom")
        shutdown_logging()

        names = sorted(p.name.split("_20")[0] for p in log_dir.iterdir())
        assert names == ["log_errors", "log_full", "thumbnail_failures"]
        errors = next(log_dir.glob("log_errors_*.log")).read_text(encoding="utf-8")
        assert "boom" in errors

    def test_console_only(self):
        """Test no directory means a single console handler"""
        setup_logging(None, verbose=True)

        assert len(logging.getLogger().handlers) == 1
        shutdown_logging()
        assert logging.getLogger().handlers == []

    def test_thumbnail_failure_report(self, temp_dir):
        """Test thumbnail fallbacks are written to the report"""
        setup_logging(temp_dir)

        log_thumbnail_failure(
            get_logger("aperture_sync.media"),
            key_id="abc",
            title="Song",
            fallback_url="https://i.ytimg.com/vi_webp/abc/maxresdefault.webp",
            error_message="HTTP 404 Not Found",
        )
        get_logger("aperture_sync.media").warning("unrelated warning")
        shutdown_logging()

        report = next(temp_dir.glob("thumbnail_failures_*.log")).read_text(encoding="utf-8")
        assert report == (
            "yt:abc - Song\n"
            "fallback: https://i.ytimg.com/vi_webp/abc/maxresdefault.webp\n"
            "reason: HTTP 404 Not Found\n\n"
        )

    def test_summary_message(self):
        """Test the summary line carries every count"""
        message = format_summary_message("music", 1, 2, 3, 4)

        assert "music" in message
        assert "Updated: 1" in message
        for count in ("2", "3", "4"):
            assert count in message


class TestProgressBars:
    """Test progress bar counters"""

    def test_thumbnail_counts(self):
        """Test downloads, cache hits and failures are counted apart"""
        bar = ThumbnailProgressBar(total=3)
        bar.update(success=True)
        bar.update(success=True, cached=True)
        bar.update(success=False)

        assert (bar.downloaded, bar.cached, bar.failed, bar.completed) == (1, 1, 1, 3)

    def test_catalog_counts(self):
        """Test catalog actions are tallied, skips only advance the bar"""
        bar = CatalogProgressBar(total=3, description="Catalog [music]")
        bar.update("inserted")
        bar.update("deleted")
        bar.update("skipped")

        assert bar.counts == {"updated": 0, "retired": 0, "deleted": 1, "inserted": 1}
        assert bar.completed == 3
