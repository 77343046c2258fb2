"""Tests for the add-on entry point"""

import functools
from unittest.mock import MagicMock, patch

import pytest

import sync
from clients.lastfm import LastFmClient
from clients.maloja import MalojaClient
from core.config import LastFmSettings, MalojaSettings, Settings, SpotifySettings
from core.models import SyncResult, Track, TransportError

SPOTIFY = SpotifySettings("cid", "secret", "refresh")


def _settings(job="recent", provider="lastfm", **kwargs):
    return Settings(
        job=job,
        playlist_id="pl",
        spotify=SPOTIFY,
        history_provider=provider,
        lastfm=LastFmSettings("user", "key", recent_cutoff_seconds=3600, top_period="7day",
                              top_min_play_count=2),
        maloja=MalojaSettings("https://maloja.test", "u", "p", recent_cutoff_seconds=7200,
                              top_period_days=30, top_min_play_count=3),
        **kwargs,
    )


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(sync, "DATA_DIR", tmp_path)
    monkeypatch.setattr(sync, "setup_logging", lambda: None)
    return tmp_path


class TestBuildTrackSource:
    @pytest.mark.parametrize("provider,job,method,args", [
        ("lastfm", "recent", LastFmClient.recent_tracks, (3600,)),
        ("lastfm", "top", LastFmClient.top_tracks, ("7day", 2)),
        ("maloja", "recent", MalojaClient.recent_tracks, (7200,)),
        ("maloja", "top", MalojaClient.top_tracks, (30, 3)),
    ])
    def test_chooses_variant_once(self, provider, job, method, args):
        source = sync.build_track_source(_settings(job, provider), MagicMock())

        assert isinstance(source, functools.partial)
        assert source.func.__func__ is method
        assert source.args == args


class TestRunJob:
    def test_empty_source_skips_spotify(self):
        with patch.object(sync, "build_track_source", return_value=lambda: []), \
                patch.object(sync, "SpotifyClient") as spotify:
            assert sync.run_job(_settings(), MagicMock()) == 0
        spotify.assert_not_called()

    def test_runs_engine_with_window(self):
        engine = MagicMock()
        engine.sync.return_value = SyncResult(added=2, deleted=1)
        tracks = [Track("A", "X")]

        with patch.object(sync, "build_track_source", return_value=lambda: tracks), \
                patch.object(sync, "SpotifyClient"), \
                patch.object(sync, "SyncEngine", return_value=engine):
            assert sync.run_job(_settings(max_age_seconds=604800), MagicMock()) == 0

        engine.sync.assert_called_once_with("pl", tracks, max_age_seconds=604800)


class TestMain:
    def test_configuration_error_exits_non_zero(self, monkeypatch):
        monkeypatch.setattr(sync, "load_settings", MagicMock(side_effect=sync.ConfigurationError("missing")))
        run_job = MagicMock()
        monkeypatch.setattr(sync, "run_job", run_job)

        assert sync.main(["recent"]) == 1
        run_job.assert_not_called()

    def test_sync_error_exits_non_zero(self, monkeypatch):
        monkeypatch.setattr(sync, "load_settings", MagicMock(return_value=_settings()))
        monkeypatch.setattr(sync, "run_job", MagicMock(side_effect=TransportError("down", status_code=503)))

        assert sync.main(["recent"]) == 1

    def test_success_releases_lock(self, monkeypatch, data_dir):
        monkeypatch.setattr(sync, "load_settings", MagicMock(return_value=_settings("top")))
        monkeypatch.setattr(sync, "run_job", MagicMock(return_value=0))

        assert sync.main(["top"]) == 0
        assert not (data_dir / ".top.lock").exists()

    def test_overlapping_run_exits_early(self, monkeypatch):
        fd = sync.acquire_lock("recent")
        run_job = MagicMock()
        monkeypatch.setattr(sync, "run_job", run_job)
        try:
            assert sync.main(["recent"]) == 0
        finally:
            sync.release_lock("recent", fd)
        run_job.assert_not_called()
