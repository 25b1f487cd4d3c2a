"""Tests for sync orchestration"""

import json
from dataclasses import replace
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from aperture_sync.core.config import PlaylistSpec, load_config
from aperture_sync.core.exceptions import FetchError
from aperture_sync.sync import SyncOptions, SyncResult, run_all, run_sync
from aperture_sync.youtube.models import ResolvedItem


@pytest.fixture
def options(temp_dir):
    """Sync options pointing at a JSON catalog in the temp directory"""
    return SyncOptions(
        target=temp_dir / "catalog.json",
        mode="reconcile",
        collection="demoItems",
        config_object="defaultConfig",
        out_dir=temp_dir / "thumbs",
        asset_mount="media/yt",
        threads=2,
        show_progress=False,
    )


class TestSyncOptions:
    """Test option resolution"""

    def test_from_config_overrides(self, temp_dir, monkeypatch):
        """Test unset overrides keep the configured values"""
        monkeypatch.chdir(temp_dir)
        monkeypatch.delenv("YOUTUBE_API_KEY", raising=False)
        config = load_config()

        options = SyncOptions.from_config(config, mode="reconcile", threads=None, api_key=None)

        assert options.mode == "reconcile"
        assert options.threads == config.download.threads
        assert options.target == config.sync.target
        assert options.api_key is None


class TestRunSync:
    """Test one playlist through the pipeline"""

    @patch("aperture_sync.sync.orchestrator.fetch_playlist_items")
    def test_nothing_to_sync(self, mock_fetch, options):
        """Test an empty playlist never opens the catalog"""
        mock_fetch.return_value = []

        result = run_sync(PlaylistSpec(tag="music", playlist="PL1"), options)

        assert result.nothing_to_sync is True
        assert result.report is None
        assert not options.target.exists()

    @patch("aperture_sync.sync.orchestrator.acquire_all")
    @patch("aperture_sync.sync.orchestrator.fetch_playlist_items")
    def test_full_run(self, mock_fetch, mock_acquire, options, sample_json_catalog, make_item, make_resolved):
        """Test fetch, acquisition and reconciliation are chained"""
        items = [make_item("v1", "New title"), make_item("v2")]
        mock_fetch.return_value = items
        mock_acquire.return_value = [
            make_resolved("v1", "New title"),
            ResolvedItem(items[1], items[1].thumbnail_candidates[0], is_remote=True),
        ]
        options = replace(options, target=sample_json_catalog)

        result = run_sync(PlaylistSpec(tag="music", playlist="PL1"), options)

        assert result.fetched == 2
        assert result.remote_thumbnails == 1
        assert (result.report.updated, result.report.deleted, result.report.inserted) == (1, 1, 1)
        assert result.report.committed is True
        data = json.loads(sample_json_catalog.read_text(encoding="utf-8"))
        assert data["demoItems"][-1]["src"] == "https://i.ytimg.com/vi_webp/v2/maxresdefault.webp"

    @patch("aperture_sync.sync.orchestrator.sync_catalog")
    @patch("aperture_sync.sync.orchestrator.open_store")
    @patch("aperture_sync.sync.orchestrator.acquire_all")
    @patch("aperture_sync.sync.orchestrator.fetch_playlist_items")
    def test_playlist_overrides(self, mock_fetch, mock_acquire, mock_open, mock_sync, options, make_item):
        """Test per-playlist settings win over the run defaults"""
        mock_fetch.return_value = [make_item("a")]
        spec = PlaylistSpec(tag="music", playlist="PL1", out_dir=Path("music"), max_items=3, force_update=True)

        run_sync(spec, options)

        assert mock_fetch.call_args.kwargs["max_items"] == 3
        assert mock_acquire.call_args.args[1] == Path("music")
        assert mock_acquire.call_args.kwargs["force"] is True
        mock_sync.assert_called_once()


class TestRunAll:
    """Test batch sequencing"""

    @patch("aperture_sync.sync.orchestrator.run_sync")
    def test_sequential(self, mock_run, options):
        """Test playlists run in order with a shared session"""
        specs = [PlaylistSpec(tag="a", playlist="PL1"), PlaylistSpec(tag="b", playlist="PL2")]
        mock_run.side_effect = lambda spec, opts, session=None: SyncResult(spec=spec)
        session = Mock()

        results = run_all(specs, options, session=session)

        assert [r.spec.tag for r in results] == ["a", "b"]
        assert all(c.kwargs["session"] is session for c in mock_run.call_args_list)

    @patch("aperture_sync.sync.orchestrator.run_sync")
    def test_fail_fast(self, mock_run, options):
        """Test the first failing playlist stops the batch"""
        specs = [PlaylistSpec(tag=t, playlist=f"PL{t}") for t in ("a", "b", "c")]
        mock_run.side_effect = [SyncResult(spec=specs[0]), FetchError("all tiers failed")]

        with pytest.raises(FetchError):
            run_all(specs, options)

        assert mock_run.call_count == 2
