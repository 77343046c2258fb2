"""Test configuration and fixtures"""

import threading

import pytest

from core.dedup import normalize
from core.models import Page, ProviderLimits, SearchResult, Track

NOW = 1_700_000_000


class FakePlaylistProvider:
    """In-memory playlist provider recording every call."""

    def __init__(self, entries=None, catalog=None, page_size=50, endless=False):
        self.entries = list(entries or [])
        # (normalized name, normalized artist) -> list[SearchResult]
        self.catalog = {}
        for (name, artist), results in (catalog or {}).items():
            self.catalog[(normalize(name), normalize(artist))] = results
        self.page_size = page_size
        self.endless = endless
        self.page_calls = []
        self.search_calls = []
        self.add_calls = []
        self.delete_calls = []
        self.fail_add_on_call = None
        self._lock = threading.Lock()

    def list_page(self, playlist_id, offset):
        self.page_calls.append(offset)
        if self.endless:
            items = [Track(f"Song {offset + i}", "Band", f"id{offset + i}") for i in range(self.page_size)]
            return Page(items=items, has_next=True)
        items = self.entries[offset:offset + self.page_size]
        return Page(items=items, has_next=offset + self.page_size < len(self.entries))

    def search(self, name, artist):
        with self._lock:
            self.search_calls.append((name, artist))
        return self.catalog.get((normalize(name), normalize(artist)), [])

    def add_tracks(self, playlist_id, ids):
        self.add_calls.append(list(ids))
        if self.fail_add_on_call is not None and len(self.add_calls) == self.fail_add_on_call:
            raise RuntimeError("add failed")
        for provider_id in ids:
            name, artist = self._lookup(provider_id)
            self.entries.append(Track(name, artist, provider_id, NOW))

    def delete_tracks(self, playlist_id, ids):
        self.delete_calls.append(list(ids))
        gone = set(ids)
        self.entries = [t for t in self.entries if t.provider_id not in gone]

    def _lookup(self, provider_id):
        for (name, artist), results in self.catalog.items():
            if any(r.provider_id == provider_id for r in results):
                return name, artist
        return provider_id, ""


def playable(provider_id):
    return [SearchResult(provider_id=provider_id, is_playable=True)]


@pytest.fixture
def limits():
    return ProviderLimits(page_size=50, mutation_limit=100, resolve_batch_size=20)


@pytest.fixture
def clock():
    return lambda: NOW
