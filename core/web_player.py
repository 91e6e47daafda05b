# core/web_player.py
from typing import Optional

from PySide6.QtCore import QFile, QIODevice, QObject, QUrl, Slot
from PySide6.QtWebChannel import QWebChannel
from PySide6.QtWebEngineCore import QWebEnginePage, QWebEngineProfile, QWebEngineScript

from .artwork import ArtworkLoader
from .debug import log
from .scraper import BRIDGE_NAME, OBSERVER_SCRIPT, PLAYER_URL, USER_AGENT
from .state import NowPlayingState
from .web_bridge import WebMessageHandler

PROFILE_NAME = "AestheticPlayer"
QWEBCHANNEL_JS = ":/qtwebchannel/qwebchannel.js"


def _load_qwebchannel_js() -> str:
    f = QFile(QWEBCHANNEL_JS)
    if not f.open(QIODevice.ReadOnly):
        raise RuntimeError(f"cannot open {QWEBCHANNEL_JS}")
    try:
        return bytes(f.readAll()).decode("utf-8")
    finally:
        f.close()


def _script(name: str, source: str, point) -> QWebEngineScript:
    script = QWebEngineScript()
    script.setName(name)
    script.setSourceCode(source)
    script.setInjectionPoint(point)
    script.setWorldId(QWebEngineScript.ApplicationWorld)
    script.setRunsOnSubFrames(False)
    return script


class _ObserverBridge(QObject):
    """Published to the page as ``channel.objects.observer``."""

    def __init__(self, handler, parent=None):
        super().__init__(parent)
        self._handler = handler

    @Slot(str)
    def post(self, body: str):
        self._handler(body)


class WebPlayerScraper(QObject):
    def __init__(self, state: NowPlayingState, url: str = PLAYER_URL, loader: Optional[ArtworkLoader] = None, parent=None):
        super().__init__(parent)
        self.state = state
        self.handler = WebMessageHandler(state, loader, parent=self)
        self._closed = False

        # Named profile: cookies and storage live on disk, so the login survives restarts.
        self.profile = QWebEngineProfile(PROFILE_NAME, self)
        self.profile.setPersistentCookiesPolicy(QWebEngineProfile.ForcePersistentCookies)
        self.profile.setHttpUserAgent(USER_AGENT)

        scripts = self.profile.scripts()
        scripts.insert(_script("qwebchannel", _load_qwebchannel_js(), QWebEngineScript.DocumentCreation))
        scripts.insert(_script("player-observer", OBSERVER_SCRIPT, QWebEngineScript.DocumentReady))

        # No parent: the page has to go before the profile, see shutdown().
        self.page = QWebEnginePage(self.profile)

        self._bridge = _ObserverBridge(self.handle_message, self)
        self._channel = QWebChannel(self)
        self._channel.registerObject(BRIDGE_NAME, self._bridge)
        self.page.setWebChannel(self._channel, QWebEngineScript.ApplicationWorld)

        log("Web", f"loading {url}")
        self.page.load(QUrl(url))

    def handle_message(self, body) -> bool:
        return self.handler.handle(body)

    def shutdown(self):
        self.handler.shutdown()
        if self._closed:
            return
        self._closed = True
        self.page.triggerAction(QWebEnginePage.Stop)
        # Deferred deletes run in posting order, so the profile outlives
        # its page and flushes cookies to disk on its own teardown.
        self.page.deleteLater()
        self.profile.deleteLater()
