# core/poller.py
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal

from .debug import debug_log, log
from .media_remote import MediaRemoteError, NowPlayingSource
from .models import NowPlayingSnapshot
from .state import NowPlayingState

POLL_INTERVAL_MS = 1000


class SystemMediaPoller(QObject):
    # Emitted from the worker thread, delivered on the GUI thread.
    fetched = Signal(object)

    def __init__(self, state: NowPlayingState, source: NowPlayingSource, interval_ms: int = POLL_INTERVAL_MS, parent=None):
        super().__init__(parent)
        self.state = state
        self.source = source

        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self.tick)

        self._executor = ThreadPoolExecutor(max_workers=1)
        self._pending: Optional[Future] = None
        self._last_error = None

        self.fetched.connect(self._on_fetched)

    def start(self):
        self._timer.start()
        self.tick()

    def stop(self):
        self._timer.stop()
        self._executor.shutdown(wait=False, cancel_futures=True)

    def is_active(self) -> bool:
        return self._timer.isActive()

    def tick(self):
        # One request at a time; a slow reply simply swallows the next tick.
        if self._pending is not None and not self._pending.done():
            return

        try:
            self._pending = self._executor.submit(self.fetch_once)
        except RuntimeError:
            # executor already shut down
            return
        self._pending.add_done_callback(self._on_done)

    def _on_done(self, future: Future):
        if future.cancelled():
            return
        self.fetched.emit(future.result())

    def fetch_once(self) -> Optional[NowPlayingSnapshot]:
        try:
            snapshot = self.source.fetch()
        except MediaRemoteError as e:
            self._report(e)
            return None
        except Exception as e:
            self._report(e, unexpected=True)
            return None

        if self._last_error is not None:
            log("MediaRemote", "recovered")
            self._last_error = None
        return snapshot

    def _report(self, error: Exception, unexpected: bool = False):
        text = f"{type(error).__name__}: {error}"
        if text != self._last_error:
            what = "fetch crashed" if unexpected else "fetch failed"
            log("MediaRemote", f"{what}, skipping tick ({text})")
            self._last_error = text
        else:
            debug_log(f"MediaRemote still failing: {text}")

    def _on_fetched(self, snapshot):
        if snapshot is None:
            return
        self.state.apply(snapshot)
