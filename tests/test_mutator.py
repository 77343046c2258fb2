"""Tests for chunked mutations"""

import math

import pytest

from conftest import FakePlaylistProvider
from core.models import PartialMutationError, TransportError
from core.mutator import BatchMutator, chunked


class TestChunking:
    @pytest.mark.parametrize("n,limit", [(1, 100), (100, 100), (101, 100), (250, 100), (7, 3)])
    def test_request_count_and_last_chunk_size(self, n, limit):
        provider = FakePlaylistProvider()
        ids = [f"id{i}" for i in range(n)]

        requests = BatchMutator(provider, limit).add_all("pl", ids)

        assert requests == math.ceil(n / limit)
        assert len(provider.add_calls) == requests
        assert len(provider.add_calls[-1]) == (n % limit or limit)
        assert [i for call in provider.add_calls for i in call] == ids

    def test_empty_input_issues_no_calls(self):
        provider = FakePlaylistProvider()
        assert BatchMutator(provider, 100).delete_all("pl", []) == 0
        assert provider.delete_calls == []

    def test_chunked_helper(self):
        assert chunked(["a", "b", "c"], 2) == [["a", "b"], ["c"]]


class TestFailures:
    def test_failure_after_applied_chunks_is_partial(self):
        provider = FakePlaylistProvider()
        provider.fail_add_on_call = 2
        ids = [f"id{i}" for i in range(5)]

        with pytest.raises(PartialMutationError) as exc_info:
            BatchMutator(provider, 2).add_all("pl", ids)

        err = exc_info.value
        assert (err.action, err.applied, err.total) == ("add", 1, 3)
        assert isinstance(err.__cause__, RuntimeError)
        # Remaining chunk not attempted, applied chunk not rolled back
        assert len(provider.add_calls) == 2
        assert [t.provider_id for t in provider.entries] == ["id0", "id1"]

    def test_failure_on_first_chunk_propagates_original_error(self):
        provider = FakePlaylistProvider()

        def fail(playlist_id, ids):
            raise TransportError("nope", status_code=400)

        provider.delete_tracks = fail

        with pytest.raises(TransportError):
            BatchMutator(provider, 2).delete_all("pl", ["a", "b", "c"])
