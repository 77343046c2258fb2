"""Playlist snapshot fetching."""

import logging
from typing import Protocol

from core.models import Page, Snapshot, Track

logger = logging.getLogger(__name__)


class PageSource(Protocol):
    def list_page(self, playlist_id: str, offset: int) -> Page: ...


class SnapshotFetcher:
    """Materializes a size-capped snapshot of a remote playlist."""

    def __init__(self, provider: PageSource, page_size: int):
        self._provider = provider
        self._page_size = page_size

    def fetch(self, playlist_id: str, max_size: int) -> Snapshot:
        """
        Request pages at increasing offsets until the provider reports no
        further page or the offset reaches `max_size`. Errors propagate;
        nothing partial is returned.
        """
        tracks: list[Track] = []
        offset = 0

        while True:
            page = self._provider.list_page(playlist_id, offset)
            tracks.extend(page.items)
            offset += self._page_size

            if not page.has_next:
                break
            if offset >= max_size:
                logger.warning(f"Snapshot capped at offset {offset}, playlist has more items")
                break

        logger.info(f"Snapshot: {len(tracks)} tracks")
        return tuple(tracks)
