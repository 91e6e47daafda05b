"""Tests for the shared now-playing state."""

import pytest

from core.models import NowPlayingSnapshot
from core.state import PLACEHOLDER_ARTIST, PLACEHOLDER_TITLE, NowPlayingState


@pytest.fixture
def state():
    return NowPlayingState()


class TestDefaults:

    def test_placeholders(self, state):
        assert state.title == PLACEHOLDER_TITLE
        assert state.artist == PLACEHOLDER_ARTIST
        assert state.artwork is None
        assert state.artwork_url == ""
        assert state.is_playing is False


class TestMerge:

    def test_partial_update_keeps_other_fields(self, state):
        state.apply(NowPlayingSnapshot(title="Song A", artist="Band"))
        state.apply(NowPlayingSnapshot(title="Song B"))
        assert state.title == "Song B"
        assert state.artist == "Band"

    def test_blank_values_never_clear(self, state):
        state.apply(NowPlayingSnapshot(title="Song A", artist="Band", artwork_url="https://img/a"))
        changed = state.apply(NowPlayingSnapshot(title="   ", artist="", artwork_url=""))
        assert changed is False
        assert state.title == "Song A"
        assert state.artist == "Band"
        assert state.artwork_url == "https://img/a"

    def test_redundant_write_emits_nothing(self, state):
        state.apply(NowPlayingSnapshot(title="Song A", artist="Band", playback_rate=1.0))
        calls = []
        state.changed.connect(lambda: calls.append("changed"))
        state.track_changed.connect(lambda t, a: calls.append("track"))
        assert state.apply(NowPlayingSnapshot(title="Song A", artist="Band", playback_rate=1.0)) is False
        assert calls == []

    def test_track_changed_carries_identity(self, state):
        seen = []
        state.track_changed.connect(lambda t, a: seen.append((t, a)))
        state.apply(NowPlayingSnapshot(title=" Song A ", artist="Band"))
        assert seen == [("Song A", "Band")]


class TestArtwork:

    def test_later_bad_artwork_keeps_last_good(self, state, red_png, blue_png, garbage_bytes):
        sequence = [red_png, b"", garbage_bytes, None, blue_png, garbage_bytes, b""]
        last_good = None
        for data in sequence:
            state.apply(NowPlayingSnapshot(artwork_data=data))
            if data in (red_png, blue_png):
                last_good = data
            assert state.artwork is not None
            expected = 0xFFFF0000 if last_good == red_png else 0xFF0000FF
            assert state.artwork.pixel(0, 0) == expected

    def test_undecodable_first_artwork_stays_placeholder(self, state, garbage_bytes):
        assert state.apply(NowPlayingSnapshot(artwork_data=garbage_bytes)) is False
        assert state.artwork is None

    def test_same_bytes_decoded_once(self, state, red_png):
        emitted = []
        state.artwork_changed.connect(lambda img: emitted.append(img))
        state.apply(NowPlayingSnapshot(artwork_data=red_png))
        state.apply(NowPlayingSnapshot(artwork_data=red_png))
        assert len(emitted) == 1


class TestPlayback:

    def test_zero_rate_is_paused(self, state):
        state.apply(NowPlayingSnapshot(playback_rate=1.0))
        state.apply(NowPlayingSnapshot(playback_rate=0.0))
        assert state.is_playing is False

    def test_positive_rate_is_playing(self, state):
        state.apply(NowPlayingSnapshot(playback_rate=1.0))
        assert state.is_playing is True

    def test_absent_rate_leaves_flag(self, state):
        state.apply(NowPlayingSnapshot(playback_rate=1.0))
        state.apply(NowPlayingSnapshot(title="Other"))
        assert state.is_playing is True

    def test_playing_changed_signal(self, state):
        seen = []
        state.playing_changed.connect(seen.append)
        state.apply(NowPlayingSnapshot(playback_rate=2.0))
        state.apply(NowPlayingSnapshot(playback_rate=1.0))
        state.apply(NowPlayingSnapshot(playback_rate=0.0))
        assert seen == [True, False]


class TestProducers:

    def test_last_writer_wins_per_field(self, state):
        state.apply(NowPlayingSnapshot(title="From OS", artist="OS Artist", playback_rate=1.0))
        state.apply(NowPlayingSnapshot(title="From Web", artist="Web Artist"))
        assert (state.title, state.artist) == ("From Web", "Web Artist")
        assert state.is_playing is True
