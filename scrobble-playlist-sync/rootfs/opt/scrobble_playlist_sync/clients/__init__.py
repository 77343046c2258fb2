"""API clients: the Spotify playlist provider and scrobble history sources."""

from typing import Iterable, List, Tuple

from core.models import Track


def unique_tracks(pairs: Iterable[Tuple[str, str]]) -> List[Track]:
    """Tracks for each distinct (name, artist) pair, first occurrence wins."""
    seen = set()
    tracks = []
    for name, artist in pairs:
        key = f"{name}::{artist}"
        if key in seen:
            continue
        seen.add(key)
        tracks.append(Track(name=name, artist=artist))
    return tracks
