# core/state.py
import hashlib
from typing import Optional

from PySide6.QtCore import QObject, Signal
from PySide6.QtGui import QImage

from .artwork import decode_artwork
from .models import NowPlayingSnapshot

PLACEHOLDER_TITLE = "Not Playing"
PLACEHOLDER_ARTIST = "Waiting for music…"


def _clean(value) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


class NowPlayingState(QObject):
    """The one now-playing record shared by every producer and the UI.

    Only ``apply`` mutates it, and only from the GUI thread. Fields are
    merged when present: an empty or missing incoming value never clears
    what is already shown, and artwork that fails to decode is ignored.
    """

    changed = Signal()
    track_changed = Signal(str, str)
    artwork_changed = Signal(QImage)
    playing_changed = Signal(bool)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.title = PLACEHOLDER_TITLE
        self.artist = PLACEHOLDER_ARTIST
        self.artwork_url = ""
        self.artwork: Optional[QImage] = None
        self.is_playing = False
        self._artwork_digest = None

    def apply(self, snapshot: NowPlayingSnapshot) -> bool:
        track_dirty = False
        artwork_dirty = False
        playing_dirty = False

        title = _clean(snapshot.title)
        if title and title != self.title:
            self.title = title
            track_dirty = True

        artist = _clean(snapshot.artist)
        if artist and artist != self.artist:
            self.artist = artist
            track_dirty = True

        url = _clean(snapshot.artwork_url)
        url_dirty = bool(url) and url != self.artwork_url
        if url_dirty:
            self.artwork_url = url

        if snapshot.artwork_data:
            digest = hashlib.sha1(snapshot.artwork_data).hexdigest()
            if digest != self._artwork_digest:
                image = decode_artwork(snapshot.artwork_data)
                if image is not None:
                    self.artwork = image
                    self._artwork_digest = digest
                    artwork_dirty = True

        playing = snapshot.is_playing
        if playing is not None and playing != self.is_playing:
            self.is_playing = playing
            playing_dirty = True

        if track_dirty:
            self.track_changed.emit(self.title, self.artist)
        if artwork_dirty:
            self.artwork_changed.emit(self.artwork)
        if playing_dirty:
            self.playing_changed.emit(self.is_playing)

        dirty = track_dirty or url_dirty or artwork_dirty or playing_dirty
        if dirty:
            self.changed.emit()
        return dirty
