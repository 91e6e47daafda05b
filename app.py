import sys
from pathlib import Path
from PySide6.QtWidgets import QApplication
from PySide6.QtGui import QIcon

from core.debug import log
from core.state import NowPlayingState
from core.web_player import WebPlayerScraper
from ui.main_window import MainWindow

if sys.platform == "darwin":
    from core.media_remote import MediaRemoteSource
    from core.poller import SystemMediaPoller
else:
    MediaRemoteSource = None
    SystemMediaPoller = None


def main():
    app = QApplication(sys.argv)
    app.setApplicationName("Aesthetic Player")
    icon_path = Path(__file__).resolve().parent / "logo.png"
    if icon_path.exists():
        app.setWindowIcon(QIcon(str(icon_path)))

    state = NowPlayingState()
    scraper = WebPlayerScraper(state)

    poller = None
    if SystemMediaPoller is not None:
        poller = SystemMediaPoller(state, MediaRemoteSource())
        poller.start()
    else:
        log("Music", "system now-playing source unavailable on this OS")

    win = MainWindow(state, scraper.page)
    win.show()

    def _shutdown():
        if poller:
            poller.stop()
        win.release_browser()
        scraper.shutdown()

    app.aboutToQuit.connect(_shutdown)
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
