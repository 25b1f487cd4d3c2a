"""Test configuration and fixtures"""

import json
import logging
import pytest
import tempfile
from pathlib import Path
from unittest.mock import Mock

from requests import HTTPError

from aperture_sync.youtube.models import CanonicalItem, ResolvedItem


SAMPLE_MODULE = """\
import type { GalleryItem } from '@shashank-sharma/aperture-theme';

// Demo gallery
export const defaultConfig = {
  title: 'Demo',
  filters: ['All', 'Travel'],
};

export const demoItems: GalleryItem[] = [
  {
    id: 'yt:v1',
    kind: 'yt-video',
    src: 'media/yt/v1.jpg',
    alt: 'Old title',
    caption: 'Old title',
    url: 'https://www.youtube.com/watch?v=v1',
    tags: ['music'],
  },
  // hand-curated, never synced
  { id: 'photo-1', kind: 'image', src: '/photos/p1.jpg', alt: "Sunset, Porto", tags: ['Travel'] },
  {
    id: 'yt:v3',
    kind: 'yt-video',
    src: 'media/yt/v3.jpg',
    alt: 'Three',
    tags: ['music'],
  },
];
"""


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture(autouse=True)
def reset_root_logger():
    """Drop handlers installed by setup_logging between tests"""
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)


@pytest.fixture
def make_item():
    """Factory for CanonicalItems"""
    def factory(video_id, title=None):
        return CanonicalItem.create(video_id, title=title or f"Video {video_id}")
    return factory


@pytest.fixture
def make_resolved(make_item):
    """Factory for ResolvedItems with a local thumbnail under media/yt"""
    def factory(video_id, title=None, extension="jpg"):
        return ResolvedItem(
            item=make_item(video_id, title),
            local_asset_path=f"media/yt/{video_id}.{extension}",
        )
    return factory


@pytest.fixture
def sample_module(temp_dir):
    """A TypeScript catalog module with a config object and mixed items"""
    path = temp_dir / "config.ts"
    path.write_text(SAMPLE_MODULE, encoding="utf-8")
    return path


@pytest.fixture
def sample_json_catalog(temp_dir):
    """A JSON catalog with the same entries as sample_module"""
    path = temp_dir / "catalog.json"
    path.write_text(json.dumps({
        "defaultConfig": {"title": "Demo", "filters": ["All", "Travel"]},
        "demoItems": [
            {
                "id": "yt:v1",
                "kind": "yt-video",
                "src": "media/yt/v1.jpg",
                "alt": "Old title",
                "caption": "Old title",
                "url": "https://www.youtube.com/watch?v=v1",
                "tags": ["music"],
            },
            {
                "id": "photo-1",
                "kind": "image",
                "src": "/photos/p1.jpg",
                "alt": "Sunset, Porto",
                "tags": ["Travel"],
                "featured": True,
            },
            {
                "id": "yt:v3",
                "kind": "yt-video",
                "src": "media/yt/v3.jpg",
                "alt": "Three",
                "tags": ["music"],
            },
        ],
    }, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def mock_response():
    """Factory for requests.Response stand-ins"""
    def factory(status_code=200, content=b"", reason="OK", json_data=None):
        response = Mock()
        response.status_code = status_code
        response.content = content
        response.reason = reason
        response.json.return_value = json_data
        if status_code >= 400:
            response.raise_for_status.side_effect = HTTPError(f"{status_code} {reason}")
        else:
            response.raise_for_status.return_value = None
        return response
    return factory
