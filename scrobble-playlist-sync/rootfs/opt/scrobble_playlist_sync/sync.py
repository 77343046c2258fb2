#!/usr/bin/env python3
"""Scrobble Playlist Sync - Add-on Entry Point"""

import argparse
import fcntl
import functools
import logging
import os
import sys
import time
from pathlib import Path
from typing import Callable, List

from clients.lastfm import LastFmClient
from clients.maloja import MalojaClient
from clients.spotify import SpotifyClient
from core.config import JOBS, Settings, load_settings
from core.models import ConfigurationError, SyncError, Track
from core.sync_engine import SyncEngine
from core.transport import Transport

DATA_DIR = Path(os.environ.get("DATA_DIR", "/config/scrobble_playlist_sync"))
LOG_FILE = DATA_DIR / "scrobble_playlist_sync.log"
JOB_LABELS = {"recent": "Recent Tracks", "top": "Top Tracks"}

logger = logging.getLogger(__name__)

TrackSource = Callable[[], List[Track]]


def setup_logging() -> None:
    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.FileHandler(LOG_FILE, encoding="utf-8"),
            logging.StreamHandler()
        ]
    )


def lock_path(job: str) -> Path:
    return DATA_DIR / f".{job}.lock"


def acquire_lock(job: str) -> int | None:
    lock_file = lock_path(job)
    try:
        # Check for stale lock (older than 30 min = likely orphaned)
        if lock_file.exists():
            age = time.time() - lock_file.stat().st_mtime
            if age > 1800:  # 30 minutes
                logger.warning(f"Removing stale lock file (age: {age:.0f}s)")
                lock_file.unlink(missing_ok=True)

        fd = os.open(str(lock_file), os.O_CREAT | os.O_RDWR)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            os.close(fd)
            return None
        os.write(fd, f"{os.getpid()}\n".encode())
        return fd
    except OSError:
        return None


def release_lock(job: str, fd: int) -> None:
    try:
        fcntl.flock(fd, fcntl.LOCK_UN)
        os.close(fd)
        lock_path(job).unlink(missing_ok=True)
    except OSError as e:
        logger.debug(f"Lock release failed: {e}")


def build_track_source(settings: Settings, transport: Transport) -> TrackSource:
    """Pick the history source for the configured provider and job."""
    if settings.history_provider == "maloja":
        maloja = settings.maloja
        client = MalojaClient(transport, maloja.base_url, maloja.username, maloja.password)
        if settings.job == "recent":
            return functools.partial(client.recent_tracks, maloja.recent_cutoff_seconds)
        return functools.partial(client.top_tracks, maloja.top_period_days, maloja.top_min_play_count)

    lastfm = settings.lastfm
    client = LastFmClient(transport, lastfm.username, lastfm.api_key)
    if settings.job == "recent":
        return functools.partial(client.recent_tracks, lastfm.recent_cutoff_seconds)
    return functools.partial(client.top_tracks, lastfm.top_period, lastfm.top_min_play_count)


def run_job(settings: Settings, transport: Transport) -> int:
    prefix = f"[{JOB_LABELS[settings.job]}]"

    tracks = build_track_source(settings, transport)()
    if not tracks:
        logger.info(f"{prefix} No new tracks from {settings.history_provider}, stopping.")
        return 0

    spotify = SpotifyClient(transport, settings.spotify.client_id, settings.spotify.client_secret,
                            settings.spotify.refresh_token, settings.spotify.market)
    engine = SyncEngine(spotify, SpotifyClient.limits, max_snapshot_size=settings.max_playlist_size)
    result = engine.sync(settings.playlist_id, tracks, max_age_seconds=settings.max_age_seconds)

    for line in result.skipped:
        logger.debug(f"{prefix} {line}")
    logger.info(f"{prefix} Added {result.added} new tracks to the "
                f"{JOB_LABELS[settings.job].lower()} playlist, deleted {result.deleted}.")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Add scrobbled tracks to a Spotify playlist")
    parser.add_argument("job", choices=JOBS)
    args = parser.parse_args(argv)

    setup_logging()

    lock_fd = acquire_lock(args.job)
    if lock_fd is None:
        logger.warning(f"Another {args.job} sync running, exiting")
        return 0

    try:
        settings = load_settings(args.job)
        return run_job(settings, Transport())
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1
    except SyncError as e:
        logger.error(f"Sync failed: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1
    finally:
        release_lock(args.job, lock_fd)


if __name__ == "__main__":
    sys.exit(main())
