"""
Two-pass de-duplication of candidate tracks against a playlist snapshot.

Pass 1 compares normalized (name, artist) pairs and runs before catalog
search so obvious duplicates never cost a search call. Pass 2 compares
provider ids and runs after search; it is the authoritative check.
"""

from typing import Callable, Iterable, List, Tuple

from core.models import Track

Normalizer = Callable[[str], str]


def normalize(s: str) -> str:
    """Normalize string for comparison."""
    return s.strip().lower()


def identity_key(track: Track, norm: Normalizer = normalize) -> str:
    return f"{norm(track.name)}\x00{norm(track.artist)}"


def filter_by_approximate_identity(candidates: Iterable[Track], snapshot: Iterable[Track],
                                   norm: Normalizer = normalize) -> List[Track]:
    """Drop candidates whose normalized (name, artist) is already in the snapshot.

    Repeats within `candidates` are collapsed too; the first occurrence wins.
    """
    seen = {identity_key(track, norm) for track in snapshot}
    survivors = []
    for track in candidates:
        key = identity_key(track, norm)
        if key in seen:
            continue
        seen.add(key)
        survivors.append(track)
    return survivors


def filter_by_exact_identity(resolved: Iterable[Tuple[Track, str]],
                             snapshot: Iterable[Track]) -> List[Tuple[Track, str]]:
    """Drop resolved candidates whose provider id is already in the snapshot.

    Two candidates resolving to the same id keep only the first.
    """
    seen = {track.provider_id for track in snapshot if track.provider_id}
    survivors = []
    for track, provider_id in resolved:
        if provider_id in seen:
            continue
        seen.add(provider_id)
        survivors.append((track, provider_id))
    return survivors
