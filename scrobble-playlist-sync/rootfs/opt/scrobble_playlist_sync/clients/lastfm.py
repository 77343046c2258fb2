"""Last.fm scrobble history source"""

import logging
import time
from typing import List, Optional

from pydantic import BaseModel, Field

from clients import unique_tracks
from core.models import Track
from core.transport import Transport

logger = logging.getLogger(__name__)

API_BASE_URL = "https://ws.audioscrobbler.com/2.0/"
MAX_LIMIT = 200


class RecentArtist(BaseModel):
    text: str = Field(alias="#text", min_length=1)


class RecentDate(BaseModel):
    uts: int = Field(gt=0)


class RecentTrack(BaseModel):
    name: str = Field(min_length=1)
    artist: RecentArtist
    date: Optional[RecentDate] = None


class RecentTracks(BaseModel):
    track: List[RecentTrack]


class RecentTracksResponse(BaseModel):
    recenttracks: RecentTracks


class TopArtist(BaseModel):
    name: str = Field(min_length=1)


class TopTrack(BaseModel):
    name: str = Field(min_length=1)
    artist: TopArtist
    playcount: int = Field(gt=0)


class TopTracks(BaseModel):
    track: List[TopTrack]


class TopTracksResponse(BaseModel):
    toptracks: TopTracks


class LastFmClient:
    def __init__(self, transport: Transport, username: str, api_key: str):
        self._transport = transport
        self._username = username
        self._api_key = api_key

    def _params(self, method: str, **extra) -> dict:
        return {
            "method": method,
            "user": self._username,
            "api_key": self._api_key,
            "format": "json",
            "limit": MAX_LIMIT,
            **extra,
        }

    def recent_tracks(self, cutoff_seconds: int) -> List[Track]:
        """Distinct tracks scrobbled in the last `cutoff_seconds`."""
        now = int(time.time())
        response = self._transport.request(
            "GET", API_BASE_URL, RecentTracksResponse,
            params=self._params("user.getRecentTracks", **{"from": now - cutoff_seconds, "to": now}),
        )
        tracks = unique_tracks((t.name, t.artist.text) for t in response.recenttracks.track)
        logger.info(f"Last.fm: {len(tracks)} recent tracks")
        return tracks

    def top_tracks(self, period: str, min_play_count: int) -> List[Track]:
        """Distinct top tracks for `period` played at least `min_play_count` times."""
        response = self._transport.request(
            "GET", API_BASE_URL, TopTracksResponse,
            params=self._params("user.getTopTracks", period=period),
        )
        tracks = unique_tracks(
            (t.name, t.artist.name) for t in response.toptracks.track if t.playcount >= min_play_count
        )
        logger.info(f"Last.fm: {len(tracks)} top tracks ({period}, >= {min_play_count} plays)")
        return tracks
