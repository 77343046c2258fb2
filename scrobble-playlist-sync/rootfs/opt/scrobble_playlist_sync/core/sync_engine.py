"""
Sync Engine

Adds newly scrobbled tracks to a playlist without creating duplicates and,
optionally, evicts entries older than a rolling window.

Pipeline
--------
1. Fetch a size-capped snapshot of the playlist (sequential pages)
2. Evict entries past the rolling window (optional, chunked deletes)
3. Pass 1: drop candidates whose normalized name/artist is already present
4. Resolve survivors to provider ids (batched concurrent searches)
5. Pass 2: drop ids already present in the snapshot
6. Append the remaining ids (chunked adds)

Pass 1 exists only to save search calls; pass 2 is authoritative.
Any stage failure ends the run. Chunks already applied are not rolled back,
and a re-run is safe since present tracks are skipped.
"""

import logging
import time
from typing import Callable, Protocol, Sequence

from core.dedup import filter_by_approximate_identity, filter_by_exact_identity
from core.evictor import RollingWindowEvictor
from core.fetcher import SnapshotFetcher
from core.models import Page, ProviderLimits, SearchResult, SyncResult, Track
from core.mutator import BatchMutator
from core.resolver import IdentityResolver

logger = logging.getLogger(__name__)

DEFAULT_MAX_SNAPSHOT_SIZE = 500


class PlaylistProvider(Protocol):
    def list_page(self, playlist_id: str, offset: int) -> Page: ...
    def search(self, name: str, artist: str) -> Sequence[SearchResult]: ...
    def add_tracks(self, playlist_id: str, ids: Sequence[str]) -> None: ...
    def delete_tracks(self, playlist_id: str, ids: Sequence[str]) -> None: ...


class SyncEngine:
    """Orchestrates one reconciliation run against a playlist provider."""

    def __init__(self, provider: PlaylistProvider, limits: ProviderLimits,
                 max_snapshot_size: int = DEFAULT_MAX_SNAPSHOT_SIZE,
                 clock: Callable[[], float] = time.time):
        self._max_snapshot_size = max_snapshot_size
        self._fetcher = SnapshotFetcher(provider, limits.page_size)
        self._mutator = BatchMutator(provider, limits.mutation_limit)
        self._evictor = RollingWindowEvictor(self._mutator, clock)
        self._resolver = IdentityResolver(provider, limits.resolve_batch_size)

    def sync(self, playlist_id: str, candidates: Sequence[Track],
             max_age_seconds: int | None = None) -> SyncResult:
        """Perform full sync. Returns SyncResult."""
        start = time.time()
        logger.info(f"Starting sync of {len(candidates)} candidates into {playlist_id}")

        snapshot = self._fetcher.fetch(playlist_id, self._max_snapshot_size)

        result = SyncResult()
        if max_age_seconds is not None:
            snapshot, result.deleted = self._evictor.evict(playlist_id, snapshot, max_age_seconds)

        survivors = filter_by_approximate_identity(candidates, snapshot)
        logger.info(f"Pass 1: {len(survivors)} of {len(candidates)} candidates not in playlist")
        if not survivors:
            logger.info("Nothing new to add")
            return result

        resolved = self._resolver.resolve_all(survivors)
        matched = {id(track) for track, _ in resolved}
        result.skipped = [f"No match: {t.name} by {t.artist}" for t in survivors if id(t) not in matched]

        new_tracks = filter_by_exact_identity(resolved, snapshot)
        logger.info(f"Pass 2: {len(new_tracks)} of {len(resolved)} resolved tracks not in playlist")

        ids = [provider_id for _, provider_id in new_tracks]
        if ids:
            self._mutator.add_all(playlist_id, ids)
            result.added = len(ids)

        logger.info(f"Completed in {time.time() - start:.1f}s: {result.summary()}")
        return result
