# ui/presentation.py
from PySide6.QtCore import QObject, Signal


class SpinState(QObject):
    """Whether the record turns, and when its rotation starts over.

    Rotation starts over from zero on every change of track identity.
    While held (record covered), track changes are remembered but the
    record stays still until ``release()``.
    """

    restarted = Signal()
    spinning_changed = Signal(bool)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._spinning = False
        self._held = False
        self._track = None

    @property
    def spinning(self) -> bool:
        return self._spinning

    @property
    def held(self) -> bool:
        return self._held

    def restart(self):
        if self._held:
            return
        was = self._spinning
        self._spinning = True
        self.restarted.emit()
        if not was:
            self.spinning_changed.emit(True)

    def stop(self):
        if not self._spinning:
            return
        self._spinning = False
        self.spinning_changed.emit(False)

    def hold(self):
        self._held = True
        self.stop()

    def release(self):
        self._held = False
        self.restart()

    def on_track(self, title: str, artist: str):
        track = (title, artist)
        if track == self._track:
            return
        self._track = track
        self.restart()


class OverlayState(QObject):
    # True while the browser covers the record
    changed = Signal(bool)

    def __init__(self, spin: SpinState, browser_visible: bool = True, parent=None):
        super().__init__(parent)
        self.spin = spin
        self._browser_visible = browser_visible
        if browser_visible:
            spin.hold()

    @property
    def browser_visible(self) -> bool:
        return self._browser_visible

    def show_browser(self):
        if self._browser_visible:
            return
        self._browser_visible = True
        self.spin.hold()
        self.changed.emit(True)

    def hide_browser(self):
        was = self._browser_visible
        self._browser_visible = False
        # Always spin again on return, even if it was already hidden.
        self.spin.release()
        if was:
            self.changed.emit(False)

    def toggle(self):
        if self._browser_visible:
            self.hide_browser()
        else:
            self.show_browser()
