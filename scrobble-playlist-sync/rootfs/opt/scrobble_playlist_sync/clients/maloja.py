"""Maloja scrobble history source"""

import base64
import logging
import time
from collections import Counter
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from clients import unique_tracks
from core.models import Track
from core.transport import Transport

logger = logging.getLogger(__name__)

MAX_PER_PAGE = 2500
DAY_SECONDS = 86400


class MalojaAlbum(BaseModel):
    artists: List[str] = Field(min_length=1)
    albumtitle: str = Field(min_length=1)


class MalojaTrack(BaseModel):
    artists: List[str] = Field(min_length=1)
    title: str = Field(min_length=1)
    album: Optional[MalojaAlbum] = None
    length: Optional[float] = None


class Scrobble(BaseModel):
    time: int = Field(gt=0)
    track: MalojaTrack
    duration: Optional[float] = None
    origin: Optional[str] = None


class Pagination(BaseModel):
    page: int = Field(ge=0)
    perpage: int = Field(gt=0)
    next_page: Optional[str] = None
    prev_page: Optional[str] = None


class ScrobblesResponse(BaseModel):
    status: Literal["ok"]
    list: List[Scrobble]
    pagination: Pagination


def _key(scrobble: Scrobble) -> tuple[str, str]:
    return scrobble.track.title, ", ".join(scrobble.track.artists)


class MalojaClient:
    def __init__(self, transport: Transport, base_url: str, username: str, password: str):
        self._transport = transport
        self._base_url = base_url.rstrip("/")
        token = base64.b64encode(f"{username}:{password}".encode()).decode()
        self._auth = f"Basic {token}"

    def _scrobbles_since(self, cutoff: int) -> List[Scrobble]:
        # `from` is date-only in server time; ask for the day before the
        # cutoff and filter on the exact timestamp.
        day_before = datetime.fromtimestamp(cutoff - DAY_SECONDS, tz=timezone.utc)
        response = self._transport.request(
            "GET", f"{self._base_url}/apis/mlj_1/scrobbles", ScrobblesResponse,
            params={"perpage": MAX_PER_PAGE, "page": 0, "from": day_before.strftime("%Y/%m/%d")},
            headers={"Authorization": self._auth},
        )
        if response.pagination.next_page is not None:
            logger.warning("Reached per-page limit fetching Maloja scrobbles, data may be incomplete")
        return [s for s in response.list if s.time >= cutoff]

    def recent_tracks(self, cutoff_seconds: int) -> List[Track]:
        scrobbles = self._scrobbles_since(int(time.time()) - cutoff_seconds)
        tracks = unique_tracks(_key(s) for s in scrobbles)
        logger.info(f"Maloja: {len(tracks)} recent tracks")
        return tracks

    def top_tracks(self, period_days: int, min_play_count: int) -> List[Track]:
        """Tracks played at least `min_play_count` times in the last `period_days`, most played first."""
        scrobbles = self._scrobbles_since(int(time.time()) - period_days * DAY_SECONDS)
        counts = Counter(_key(s) for s in scrobbles)
        # most_common keeps first-seen order for ties
        tracks = [Track(name=name, artist=artist)
                  for (name, artist), count in counts.most_common() if count >= min_play_count]
        logger.info(f"Maloja: {len(tracks)} top tracks ({period_days}d, >= {min_play_count} plays)")
        return tracks
