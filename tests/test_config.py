"""Tests for configuration and batch file loading"""

from pathlib import Path

import pytest

from aperture_sync.core.config import (
    MODE_APPEND,
    MODE_RECONCILE,
    PlaylistSpec,
    load_config,
    load_playlist_specs,
)
from aperture_sync.core.exceptions import ConfigError


@pytest.fixture(autouse=True)
def isolated_env(temp_dir, monkeypatch):
    """Run from an empty directory without an API key in the environment"""
    monkeypatch.chdir(temp_dir)
    monkeypatch.delenv("YOUTUBE_API_KEY", raising=False)


def write(path, text):
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    """Test aperture-sync.yaml loading"""

    def test_defaults_without_file(self):
        """Test defaults apply when no config file exists"""
        config = load_config()

        assert config.youtube.api_key is None
        assert config.sync.mode == MODE_APPEND
        assert config.sync.target == Path("src/content/items.ts")
        assert config.sync.collection == "items"
        assert config.sync.out_dir == Path("public/media/yt")
        assert config.sync.max_items is None
        assert config.download.threads == 4
        assert config.logging.directory == Path(".aperture-sync/logs")

    def test_file_in_working_directory(self, temp_dir):
        """Test aperture-sync.yaml in the working directory is picked up"""
        write(temp_dir / "aperture-sync.yaml", (
            "sync:\n"
            "  target: src/lib/config.ts\n"
            "  mode: reconcile\n"
            "  collection: demoItems\n"
            "  max: 50\n"
            "download:\n"
            "  threads: 8\n"
            "logging:\n"
            "  directory: null\n"
        ))

        config = load_config()

        assert config.sync.mode == MODE_RECONCILE
        assert config.sync.collection == "demoItems"
        assert config.sync.max_items == 50
        assert config.download.threads == 8
        assert config.logging.directory is None

    def test_api_key_from_environment(self, monkeypatch):
        """Test YOUTUBE_API_KEY fills a missing key"""
        monkeypatch.setenv("YOUTUBE_API_KEY", " env-key ")

        assert load_config().youtube.api_key == "env-key"

    def test_explicit_missing_file(self, temp_dir):
        """Test an explicit --config path must exist"""
        with pytest.raises(ConfigError, match="not found"):
            load_config(temp_dir / "nope.yaml")

    def test_invalid_yaml(self, temp_dir):
        """Test YAML syntax errors are configuration errors"""
        path = write(temp_dir / "bad.yaml", "sync: [unclosed\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    @pytest.mark.parametrize("text", [
        "sync:\n  mode: mirror\n",
        "sync: []\n",
        "download:\n  threads: 0\n",
        "sync:\n  max: true\n",
        "sync:\n  force_update: yes please\n",
    ])
    def test_invalid_values(self, temp_dir, text):
        """Test invalid values are rejected"""
        path = write(temp_dir / "c.yaml", text)

        with pytest.raises(ConfigError):
            load_config(path)


class TestLoadPlaylistSpecs:
    """Test the declarative batch file"""

    def test_specs_with_defaults(self, temp_dir):
        """Test defaults fill unset fields and entries override them"""
        path = write(temp_dir / "playlists.yaml", (
            "defaults:\n"
            "  max: 200\n"
            "  outDir: public/media/yt\n"
            "playlists:\n"
            "  - tag: Gaming\n"
            "    playlist: \"https://www.youtube.com/playlist?list=PLxxxx\"\n"
            "  - tag: Music\n"
            "    playlist: PLyyyy\n"
            "    outDir: public/media/music\n"
            "    max: 10\n"
            "    forceUpdate: true\n"
        ))

        specs = load_playlist_specs(path)

        assert specs == [
            PlaylistSpec(
                tag="Gaming",
                playlist="https://www.youtube.com/playlist?list=PLxxxx",
                out_dir=Path("public/media/yt"),
                max_items=200,
            ),
            PlaylistSpec(
                tag="Music",
                playlist="PLyyyy",
                out_dir=Path("public/media/music"),
                max_items=10,
                force_update=True,
            ),
        ]

    def test_missing_playlists(self, temp_dir):
        """Test a file without playlists is rejected"""
        path = write(temp_dir / "playlists.yaml", "defaults:\n  max: 1\n")

        with pytest.raises(ConfigError, match="playlists"):
            load_playlist_specs(path)

    def test_entry_without_tag(self, temp_dir):
        """Test every entry needs a tag"""
        path = write(temp_dir / "playlists.yaml", "playlists:\n  - playlist: PL1\n")

        with pytest.raises(ConfigError, match=r"playlists\[1\]\.tag"):
            load_playlist_specs(path)

    def test_missing_file(self, temp_dir):
        """Test a missing batch file is a configuration error"""
        with pytest.raises(ConfigError):
            load_playlist_specs(temp_dir / "missing.yaml")
