"""Spotify Web API Client - playlist provider for the sync engine"""

import logging
import threading
import time
from datetime import datetime
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from core.models import Page, ProviderLimits, SearchResult, Track
from core.transport import Transport

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.spotify.com/v1"
TOKEN_URL = "https://accounts.spotify.com/api/token"
PLAYLIST_ITEM_FIELDS = "next,items(added_at,track(id,name,artists(name)))"

SPOTIFY_LIMITS = ProviderLimits(page_size=50, mutation_limit=100, resolve_batch_size=20)


class AccessTokenResponse(BaseModel):
    access_token: str = Field(min_length=1)
    expires_in: int = 3600


class SpotifyArtist(BaseModel):
    name: str


class SpotifyTrack(BaseModel):
    id: Optional[str] = None
    name: str
    artists: List[SpotifyArtist]


class PlaylistItem(BaseModel):
    added_at: Optional[datetime] = None
    track: Optional[SpotifyTrack] = None


class PlaylistItemsResponse(BaseModel):
    items: List[PlaylistItem]
    next: Optional[str] = None


class SearchTrack(BaseModel):
    id: str
    is_playable: bool = False
    is_local: bool = False


class SearchTracks(BaseModel):
    items: List[SearchTrack]


class SearchResponse(BaseModel):
    tracks: SearchTracks


class SnapshotResponse(BaseModel):
    snapshot_id: str


class SpotifyClient:
    """Implements the playlist provider operations against the Web API."""

    limits = SPOTIFY_LIMITS

    def __init__(self, transport: Transport, client_id: str, client_secret: str,
                 refresh_token: str, market: str = "NZ"):
        self._transport = transport
        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self._market = market
        self._token: str | None = None
        self._token_expires: float = 0
        self._token_lock = threading.Lock()

    def _refresh_access_token(self) -> None:
        logger.debug("Refreshing Spotify access token")
        response = self._transport.request(
            "POST", TOKEN_URL, AccessTokenResponse,
            data={
                "grant_type": "refresh_token",
                "refresh_token": self._refresh_token,
                "client_id": self._client_id,
                "client_secret": self._client_secret,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        self._token = response.access_token
        # Refresh a minute early
        self._token_expires = time.time() + response.expires_in - 60

    def _headers(self) -> dict:
        with self._token_lock:
            if self._token is None or time.time() >= self._token_expires:
                self._refresh_access_token()
            return {"Authorization": f"Bearer {self._token}"}

    def list_page(self, playlist_id: str, offset: int) -> Page:
        response = self._transport.request(
            "GET", f"{API_BASE_URL}/playlists/{playlist_id}/tracks", PlaylistItemsResponse,
            params={
                "fields": PLAYLIST_ITEM_FIELDS,
                "market": self._market,
                "limit": self.limits.page_size,
                "offset": offset,
            },
            headers=self._headers(),
        )

        tracks = []
        for item in response.items:
            if item.track is None:
                continue
            tracks.append(Track(
                name=item.track.name,
                artist=", ".join(a.name for a in item.track.artists),
                provider_id=item.track.id,
                added_at=int(item.added_at.timestamp()) if item.added_at else None,
            ))

        logger.debug(f"Playlist {playlist_id} offset {offset}: {len(tracks)} tracks")
        return Page(items=tracks, has_next=response.next is not None)

    def search(self, name: str, artist: str) -> List[SearchResult]:
        response = self._transport.request(
            "GET", f"{API_BASE_URL}/search", SearchResponse,
            params={
                "q": f"track:{name.strip()} artist:{artist.strip()}",
                "type": "track",
                "market": self._market,
                "limit": 1,
            },
            headers=self._headers(),
        )
        return [
            SearchResult(provider_id=t.id, is_playable=t.is_playable, is_local=t.is_local)
            for t in response.tracks.items
        ]

    def add_tracks(self, playlist_id: str, ids: Sequence[str]) -> None:
        self._transport.request(
            "POST", f"{API_BASE_URL}/playlists/{playlist_id}/tracks", SnapshotResponse,
            json={"uris": [f"spotify:track:{i}" for i in ids]},
            headers=self._headers(),
        )
        logger.info(f"Added {len(ids)} tracks to {playlist_id}")

    def delete_tracks(self, playlist_id: str, ids: Sequence[str]) -> None:
        self._transport.request(
            "DELETE", f"{API_BASE_URL}/playlists/{playlist_id}/tracks", SnapshotResponse,
            json={"tracks": [{"uri": f"spotify:track:{i}"} for i in ids]},
            headers=self._headers(),
        )
        logger.info(f"Removed {len(ids)} tracks from {playlist_id}")
