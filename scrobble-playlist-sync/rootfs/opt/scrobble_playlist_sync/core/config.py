"""Environment configuration for sync jobs."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

from core.models import ConfigurationError

JOBS = ("recent", "top")
HISTORY_PROVIDERS = ("lastfm", "maloja")
LASTFM_TOP_PERIODS = ("7day", "1month", "3month", "6month", "12month", "overall")


@dataclass(frozen=True)
class SpotifySettings:
    client_id: str
    client_secret: str
    refresh_token: str
    market: str = "NZ"


@dataclass(frozen=True)
class LastFmSettings:
    username: str
    api_key: str
    recent_cutoff_seconds: int | None = None
    top_period: str | None = None
    top_min_play_count: int | None = None


@dataclass(frozen=True)
class MalojaSettings:
    base_url: str
    username: str
    password: str
    recent_cutoff_seconds: int | None = None
    top_period_days: int | None = None
    top_min_play_count: int | None = None


@dataclass(frozen=True)
class Settings:
    job: str
    playlist_id: str
    spotify: SpotifySettings
    history_provider: str
    lastfm: LastFmSettings | None = None
    maloja: MalojaSettings | None = None
    max_age_seconds: int | None = None
    max_playlist_size: int = 500


def _require(env: Mapping[str, str], name: str) -> str:
    value = env.get(name, "").strip()
    if not value:
        raise ConfigurationError(f"Missing required environment variable {name}")
    return value


def _int(env: Mapping[str, str], name: str, minimum: int | None = None,
         maximum: int | None = None, default: int | None = None, required: bool = True) -> int | None:
    raw = env.get(name, "").strip()
    if not raw:
        if default is not None or not required:
            return default
        raise ConfigurationError(f"Missing required environment variable {name}")
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    if minimum is not None and value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    if maximum is not None and value > maximum:
        raise ConfigurationError(f"{name} must be <= {maximum}, got {value}")
    return value


def _choice(env: Mapping[str, str], name: str, choices: tuple[str, ...], default: str | None = None) -> str:
    value = env.get(name, "").strip() or default
    if value not in choices:
        raise ConfigurationError(f"{name} must be one of {', '.join(choices)}, got {value!r}")
    return value


def _lastfm(env: Mapping[str, str], job: str) -> LastFmSettings:
    username = _require(env, "LASTFM_USERNAME")
    api_key = _require(env, "LASTFM_API_KEY")
    if job == "recent":
        return LastFmSettings(username, api_key,
                              recent_cutoff_seconds=_int(env, "LASTFM_RECENT_CUTOFF_SECONDS", minimum=3600))
    return LastFmSettings(username, api_key,
                          top_period=_choice(env, "LASTFM_TOP_PERIOD", LASTFM_TOP_PERIODS),
                          top_min_play_count=_int(env, "LASTFM_TOP_MIN_PLAY_COUNT", minimum=1))


def _maloja(env: Mapping[str, str], job: str) -> MalojaSettings:
    base_url = _require(env, "MALOJA_BASE_URL").rstrip("/")
    username = _require(env, "MALOJA_AUTH_USERNAME")
    password = _require(env, "MALOJA_AUTH_PASSWORD")
    if job == "recent":
        return MalojaSettings(base_url, username, password,
                              recent_cutoff_seconds=_int(env, "MALOJA_RECENT_CUTOFF_SECONDS",
                                                         minimum=3600, maximum=2592000))
    return MalojaSettings(base_url, username, password,
                          top_period_days=_int(env, "MALOJA_TOP_PERIOD_DAYS", minimum=1, maximum=90),
                          top_min_play_count=_int(env, "MALOJA_TOP_MIN_PLAY_COUNT", minimum=1))


def load_settings(job: str, env: Mapping[str, str] | None = None,
                  dotenv_path: Path | None = None) -> Settings:
    """
    Build validated settings for `job` ("recent" or "top").

    Reads os.environ (after loading a .env file if present) unless an
    explicit mapping is given. Raises ConfigurationError on the first
    missing or invalid variable.
    """
    if env is None:
        load_dotenv(dotenv_path)
        env = os.environ

    if job not in JOBS:
        raise ConfigurationError(f"Unknown job {job!r}, expected one of {', '.join(JOBS)}")

    provider = _choice(env, "HISTORY_PROVIDER", HISTORY_PROVIDERS, default="lastfm")
    playlist_var = "SPOTIFY_RECENT_PLAYLIST_ID" if job == "recent" else "SPOTIFY_TOP_PLAYLIST_ID"

    spotify = SpotifySettings(
        client_id=_require(env, "SPOTIFY_CLIENT_ID"),
        client_secret=_require(env, "SPOTIFY_CLIENT_SECRET"),
        refresh_token=_require(env, "SPOTIFY_REFRESH_TOKEN"),
        market=env.get("SPOTIFY_MARKET", "").strip() or "NZ",
    )

    max_age = None
    if job == "recent":
        max_age = _int(env, "SPOTIFY_RECENT_MAX_AGE_SECONDS", minimum=1, required=False)

    return Settings(
        job=job,
        playlist_id=_require(env, playlist_var),
        spotify=spotify,
        history_provider=provider,
        lastfm=_lastfm(env, job) if provider == "lastfm" else None,
        maloja=_maloja(env, job) if provider == "maloja" else None,
        max_age_seconds=max_age,
        max_playlist_size=_int(env, "SPOTIFY_MAX_PLAYLIST_SIZE", minimum=1, default=500),
    )
