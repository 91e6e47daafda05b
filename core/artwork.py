# core/artwork.py
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

import requests
from PySide6.QtCore import QObject, Signal
from PySide6.QtGui import QImage

from .debug import debug_log, log

FETCH_TIMEOUT = 6
_HTTP = requests.Session()


def decode_artwork(data: Optional[bytes]) -> Optional[QImage]:
    if not data:
        return None
    image = QImage.fromData(bytes(data))
    if image.isNull():
        return None
    return image


def fetch_artwork(url: str, session: Optional[requests.Session] = None, timeout: float = FETCH_TIMEOUT) -> Optional[bytes]:
    if not url:
        return None

    http = session or _HTTP
    try:
        r = http.get(url, timeout=timeout)
        r.raise_for_status()
    except requests.RequestException as e:
        log("artwork", f"download failed for {url}: {e}")
        return None

    data = r.content
    if not data:
        debug_log(f"artwork: empty body for {url}")
        return None
    return data


class ArtworkLoader(QObject):
    """Downloads artwork off the GUI thread.

    ``loaded`` is emitted from the worker thread; Qt queues it onto the
    thread the receiver lives in, so slots always run on the GUI thread.
    """

    loaded = Signal(str, bytes)

    def __init__(self, session: Optional[requests.Session] = None, parent=None):
        super().__init__(parent)
        self._session = session or _HTTP
        self._executor = ThreadPoolExecutor(max_workers=1)
        self._last_url = ""

    def request(self, url: str) -> bool:
        if not url or url == self._last_url:
            return False
        self._last_url = url

        future = self._executor.submit(fetch_artwork, url, self._session)
        future.add_done_callback(lambda f: self._on_done(url, f))
        return True

    def _on_done(self, url: str, future: Future):
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            log("artwork", f"download crashed for {url}: {error}")
            return
        data = future.result()
        if data:
            self.loaded.emit(url, data)

    def reset(self):
        self._last_url = ""

    def shutdown(self):
        self._executor.shutdown(wait=False, cancel_futures=True)
