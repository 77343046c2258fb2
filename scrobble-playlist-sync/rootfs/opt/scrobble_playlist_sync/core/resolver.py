"""
Identity Resolver

Maps candidate tracks to provider ids via catalog search. Searches run in
sequential batches; requests inside a batch run concurrently and the batch
is joined before the next one starts.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import List, Protocol, Sequence, Tuple

from core.models import SearchResult, Track

logger = logging.getLogger(__name__)


class CatalogSearch(Protocol):
    def search(self, name: str, artist: str) -> Sequence[SearchResult]: ...


def pick_match(results: Sequence[SearchResult]) -> str | None:
    """First result that is playable and not a local file."""
    for result in results:
        if result.is_playable and not result.is_local:
            return result.provider_id
    return None


class IdentityResolver:
    def __init__(self, provider: CatalogSearch, batch_size: int):
        self._provider = provider
        self._batch_size = batch_size

    def resolve(self, candidate: Track) -> str | None:
        results = self._provider.search(candidate.name, candidate.artist)
        provider_id = pick_match(results)
        if provider_id is None:
            logger.debug(f"No match: {candidate.name} by {candidate.artist}")
        return provider_id

    def resolve_all(self, candidates: Sequence[Track]) -> List[Tuple[Track, str]]:
        """
        Resolve candidates in batches of `batch_size`.

        Unmatched candidates are dropped. If any search in a batch raises,
        the batch is still joined, then the first error is re-raised.
        """
        resolved: List[Tuple[Track, str]] = []
        if not candidates:
            return resolved

        with ThreadPoolExecutor(max_workers=self._batch_size) as pool:
            for start in range(0, len(candidates), self._batch_size):
                batch = candidates[start:start + self._batch_size]
                futures = [pool.submit(self.resolve, track) for track in batch]
                wait(futures)

                for track, future in zip(batch, futures):
                    provider_id = future.result()
                    if provider_id is not None:
                        resolved.append((track, provider_id))

        logger.info(f"Resolved {len(resolved)} of {len(candidates)} candidates")
        return resolved
