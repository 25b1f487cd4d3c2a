"""
YouTube Data API v3 client for aperture-sync.

Only the playlistItems.list endpoint is used: it is the credentialed
listing tier of the source adapter. Requests go through a requests.Session
so connection pooling is shared across pages.

Usage:
    from aperture_sync.youtube.client import YouTubeDataClient

    client = YouTubeDataClient(api_key="AIza...", timeout=30)
    items = client.list_playlist_items("PLxxxx", max_items=200)
"""

from typing import Any

import requests

from aperture_sync.core.logger import get_logger
from aperture_sync.youtube.models import CanonicalItem


logger = get_logger(__name__)


DATA_API_URL = "https://www.googleapis.com/youtube/v3/playlistItems"

# Maximum page size accepted by playlistItems.list
MAX_PAGE_SIZE = 50


class YouTubeDataClient:
    """
    Thin client for the YouTube Data API playlistItems endpoint.

    Attributes:
        api_key: Data API key.
        timeout: Per-request timeout in seconds.
        session: The requests.Session used for every page.

    Error Handling:
        Transport errors, non-2xx responses and malformed bodies are raised
        as-is (requests exceptions or ValueError). Any failing page aborts
        the whole listing; the fetcher then falls through to the next tier.
    """

    def __init__(
        self,
        api_key: str,
        timeout: int = 30,
        session: requests.Session | None = None
    ) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def list_playlist_items(self, playlist_id: str, max_items: int | None = None) -> list[CanonicalItem]:
        """
        Page through a playlist until max_items is reached or pages run out.

        Args:
            playlist_id: Resolved playlist id (not a URL).
            max_items: Maximum number of items to return, None for all.

        Returns:
            CanonicalItems in playlist order. Resources without a video id
            (deleted or private videos) are skipped.

        Raises:
            requests.RequestException: On transport errors or non-2xx status.
            ValueError: If a page body is not the expected JSON object.
        """
        items: list[CanonicalItem] = []
        page_token: str | None = None
        page_number = 0

        while True:
            remaining = None if max_items is None else max_items - len(items)
            page_size = MAX_PAGE_SIZE if remaining is None else min(MAX_PAGE_SIZE, remaining)

            page = self._fetch_page(playlist_id, page_size, page_token)
            page_number += 1

            for resource in page.get("items") or []:
                item = CanonicalItem.from_data_api_item(resource)
                if item is not None:
                    items.append(item)

            logger.debug(f"Data API page {page_number}: {len(items)} items so far")

            if max_items is not None and len(items) >= max_items:
                return items[:max_items]

            page_token = page.get("nextPageToken")
            if not page_token:
                return items

    def _fetch_page(self, playlist_id: str, page_size: int, page_token: str | None) -> dict[str, Any]:
        params = {
            "part": "snippet",
            "playlistId": playlist_id,
            "maxResults": page_size,
            "key": self.api_key,
        }
        if page_token:
            params["pageToken"] = page_token

        response = self.session.get(DATA_API_URL, params=params, timeout=self.timeout)
        response.raise_for_status()

        body = response.json()
        if not isinstance(body, dict):
            raise ValueError(f"Unexpected Data API response type: {type(body).__name__}")
        return body
