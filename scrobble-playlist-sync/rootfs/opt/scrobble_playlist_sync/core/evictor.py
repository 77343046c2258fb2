"""Rolling-window eviction of aged playlist entries."""

import logging
import time
from typing import Callable, Tuple

from core.models import Snapshot
from core.mutator import BatchMutator

logger = logging.getLogger(__name__)


class RollingWindowEvictor:
    def __init__(self, mutator: BatchMutator, clock: Callable[[], float] = time.time):
        self._mutator = mutator
        self._clock = clock

    def evict(self, playlist_id: str, snapshot: Snapshot,
              max_age_seconds: int) -> Tuple[Snapshot, int]:
        """
        Delete entries older than `max_age_seconds` and return the retained
        snapshot with the number of ids deleted.

        An entry exactly `max_age_seconds` old is kept. Entries without an
        added timestamp or provider id are never evicted.
        """
        now = self._clock()
        expired_ids: list[str] = []
        for track in snapshot:
            if track.added_at is None or not track.provider_id:
                continue
            if now - track.added_at > max_age_seconds and track.provider_id not in expired_ids:
                expired_ids.append(track.provider_id)

        if not expired_ids:
            return snapshot, 0

        logger.info(f"Evicting {len(expired_ids)} tracks older than {max_age_seconds}s")
        self._mutator.delete_all(playlist_id, expired_ids)

        # The provider removes every occurrence of a deleted id.
        gone = set(expired_ids)
        retained = tuple(t for t in snapshot if t.provider_id not in gone)
        return retained, len(expired_ids)
