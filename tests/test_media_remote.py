"""Tests for the MediaRemote adapter and the system poller."""

import threading

import pytest

from core.media_remote import (
    KEY_ARTIST, KEY_ARTWORK, KEY_RATE, KEY_TITLE,
    MediaRemoteError, MediaRemoteSource, NowPlayingSource,
    SymbolResolutionError, _InFlightRequests, snapshot_from_payload,
)
from core.models import NowPlayingSnapshot
from core.poller import POLL_INTERVAL_MS, SystemMediaPoller
from core.state import PLACEHOLDER_TITLE, NowPlayingState


class FakeSource(NowPlayingSource):
    def __init__(self, results):
        self.results = list(results)
        self.calls = 0

    def fetch(self):
        self.calls += 1
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class TestPayload:

    def test_recognised_keys(self):
        snap = snapshot_from_payload({
            KEY_TITLE: "Song A",
            KEY_ARTIST: "Band",
            KEY_ARTWORK: bytearray(b"\x89PNG"),
            KEY_RATE: 1,
            "kMRMediaRemoteNowPlayingInfoAlbum": "ignored",
        })
        assert snap == NowPlayingSnapshot(
            title="Song A", artist="Band", artwork_data=b"\x89PNG", playback_rate=1.0,
        )
        assert snap.is_playing is True

    def test_empty_payload(self):
        assert snapshot_from_payload({}) is None
        assert snapshot_from_payload(None) is None

    def test_malformed_values_are_absent(self):
        snap = snapshot_from_payload({KEY_TITLE: "  ", KEY_RATE: "fast", KEY_ARTWORK: b""})
        assert snap.title is None
        assert snap.playback_rate is None
        assert snap.artwork_data is None
        assert snap.is_playing is None


class TestSource:

    def test_missing_framework_raises_resolution_error(self, tmp_path):
        source = MediaRemoteSource(framework_path=str(tmp_path / "Nope.framework" / "Nope"))
        with pytest.raises(SymbolResolutionError):
            source.fetch()

    def test_resolution_error_is_media_remote_error(self):
        assert issubclass(SymbolResolutionError, MediaRemoteError)


class TestPoller:

    def test_interval(self, qapp):
        poller = SystemMediaPoller(NowPlayingState(), FakeSource([]))
        assert poller._timer.interval() == POLL_INTERVAL_MS == 1000

    def test_resolution_failure_is_noop(self, qapp, capsys):
        state = NowPlayingState()
        source = FakeSource([SymbolResolutionError("no symbol"), SymbolResolutionError("no symbol")])
        poller = SystemMediaPoller(state, source)

        assert poller.fetch_once() is None
        assert poller.fetch_once() is None
        assert state.title == PLACEHOLDER_TITLE

        # Logged once, not on every tick
        out = capsys.readouterr().out
        assert out.count("no symbol") == 1

    def test_unexpected_error_is_noop(self, qapp):
        poller = SystemMediaPoller(NowPlayingState(), FakeSource([ValueError("boom")]))
        assert poller.fetch_once() is None

    def test_snapshot_applied_on_fetch(self, qapp):
        state = NowPlayingState()
        snap = NowPlayingSnapshot(title="Song A", artist="Band", playback_rate=1.0)
        poller = SystemMediaPoller(state, FakeSource([snap]))

        poller._on_fetched(poller.fetch_once())
        assert (state.title, state.artist, state.is_playing) == ("Song A", "Band", True)

    def test_none_snapshot_keeps_state(self, qapp):
        state = NowPlayingState()
        state.apply(NowPlayingSnapshot(title="Song A"))
        poller = SystemMediaPoller(state, FakeSource([None]))
        poller._on_fetched(poller.fetch_once())
        assert state.title == "Song A"

    def test_recovery_after_failure(self, qapp):
        state = NowPlayingState()
        source = FakeSource([SymbolResolutionError("no symbol"), NowPlayingSnapshot(title="Back")])
        poller = SystemMediaPoller(state, source)
        poller._on_fetched(poller.fetch_once())
        poller._on_fetched(poller.fetch_once())
        assert state.title == "Back"
        assert poller._last_error is None

    def test_stop_after_start(self, qapp):
        poller = SystemMediaPoller(NowPlayingState(), FakeSource([None, None]))
        poller.start()
        assert poller.is_active()
        poller.stop()
        assert not poller.is_active()


class TestInFlightRequests:

    def test_unanswered_request_survives_later_fetches(self):
        registry = _InFlightRequests()
        timed_out = threading.Event()
        answered = threading.Event()
        keep = object()
        registry.add(timed_out, keep)
        registry.add(answered, object())

        answered.set()
        assert registry.reap() == 1
        assert len(registry) == 1

        # Many later fetches, still no reply for the first one
        for _ in range(5):
            registry.reap()
            registry.add(threading.Event(), object())
        assert any(k is keep for _, k in registry._requests.values())

        timed_out.set()
        registry.reap()
        assert not any(k is keep for _, k in registry._requests.values())

    def test_ids_are_unique(self):
        registry = _InFlightRequests()
        ids = {registry.add(threading.Event(), None) for _ in range(10)}
        assert len(ids) == 10


class TestPollerTick:

    def test_tick_marshals_result_to_state(self, qapp, wait):
        state = NowPlayingState()
        snap = NowPlayingSnapshot(title="From tick", artist="Band", playback_rate=1.0)
        poller = SystemMediaPoller(state, FakeSource([snap]))
        try:
            poller.tick()
            assert wait(lambda: state.title == "From tick")
            assert state.is_playing is True
        finally:
            poller.stop()

    def test_tick_skipped_while_fetch_in_flight(self, qapp, wait):
        release = threading.Event()

        class SlowSource(NowPlayingSource):
            calls = 0

            def fetch(self):
                SlowSource.calls += 1
                release.wait(2)
                return NowPlayingSnapshot(title="Slow")

        state = NowPlayingState()
        poller = SystemMediaPoller(state, SlowSource())
        try:
            poller.tick()
            poller.tick()
            poller.tick()
            release.set()
            assert wait(lambda: state.title == "Slow")
            assert SlowSource.calls == 1
        finally:
            poller.stop()
