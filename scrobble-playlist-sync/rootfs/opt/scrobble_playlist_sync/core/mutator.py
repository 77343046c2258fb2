"""Chunked playlist mutations."""

import logging
from typing import Callable, List, Protocol, Sequence

from core.models import PartialMutationError

logger = logging.getLogger(__name__)


class MutationTarget(Protocol):
    def add_tracks(self, playlist_id: str, ids: Sequence[str]) -> None: ...
    def delete_tracks(self, playlist_id: str, ids: Sequence[str]) -> None: ...


def chunked(ids: Sequence[str], size: int) -> List[Sequence[str]]:
    return [ids[i:i + size] for i in range(0, len(ids), size)]


class BatchMutator:
    """
    Issues one add/delete call per chunk of ids, sequentially.

    A failure aborts the remaining chunks. Chunks already applied stay
    applied; when there are any, the failure surfaces as
    PartialMutationError chained to the original error.
    """

    def __init__(self, provider: MutationTarget, limit: int):
        self._provider = provider
        self._limit = limit

    def _run(self, action: str, call: Callable[[str, Sequence[str]], None],
             playlist_id: str, ids: Sequence[str]) -> int:
        chunks = chunked(list(ids), self._limit)
        for applied, chunk in enumerate(chunks):
            try:
                call(playlist_id, chunk)
            except Exception as e:
                if applied == 0:
                    raise
                logger.error(f"{action} aborted after {applied}/{len(chunks)} chunks: {e}")
                raise PartialMutationError(action, applied, len(chunks)) from e
            logger.debug(f"{action} chunk {applied + 1}/{len(chunks)}: {len(chunk)} ids")
        return len(chunks)

    def add_all(self, playlist_id: str, ids: Sequence[str]) -> int:
        """Add ids in chunks. Returns the number of requests issued."""
        return self._run("add", self._provider.add_tracks, playlist_id, ids)

    def delete_all(self, playlist_id: str, ids: Sequence[str]) -> int:
        """Delete ids in chunks. Returns the number of requests issued."""
        return self._run("delete", self._provider.delete_tracks, playlist_id, ids)
