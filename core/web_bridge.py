# core/web_bridge.py
from typing import Optional

from PySide6.QtCore import QObject

from .artwork import ArtworkLoader
from .debug import debug_log
from .models import NowPlayingSnapshot
from .scraper import parse_message
from .state import NowPlayingState


class WebMessageHandler(QObject):
    """Turns observer messages from the page into state updates.

    Runs on the GUI thread. Artwork is fetched through the loader and only
    applied while it still belongs to the latest message.
    """

    def __init__(self, state: NowPlayingState, loader: Optional[ArtworkLoader] = None, parent=None):
        super().__init__(parent)
        self.state = state
        self.loader = loader or ArtworkLoader(parent=self)
        self.loader.loaded.connect(self._on_artwork_loaded)
        self._expected_artwork = ""

    @property
    def expected_artwork(self) -> str:
        return self._expected_artwork

    def handle(self, body) -> bool:
        snapshot = parse_message(body)
        if snapshot is None:
            return False

        # Each message names the artwork it wants, including "none".
        self._expected_artwork = snapshot.artwork_url or ""
        if not self._expected_artwork:
            self.loader.reset()
        self.state.apply(snapshot)
        if snapshot.artwork_url:
            self.loader.request(snapshot.artwork_url)
        return True

    def _on_artwork_loaded(self, url: str, data: bytes):
        if not url or url != self._expected_artwork:
            debug_log(f"Web: dropping stale artwork {url}")
            return
        self.state.apply(NowPlayingSnapshot(artwork_data=data))

    def shutdown(self):
        self.loader.shutdown()
