# ui/main_window.py
from PySide6.QtCore import Qt, QEasingCurve, QPoint, QPropertyAnimation, QParallelAnimationGroup
from PySide6.QtGui import QImage, QPainter, QPixmap
from PySide6.QtWebEngineCore import QWebEnginePage
from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QLabel, QPushButton, QFrame, QStackedWidget,
    QGraphicsBlurEffect, QGraphicsDropShadowEffect, QGraphicsOpacityEffect,
)

from core.state import NowPlayingState
from .presentation import OverlayState, SpinState
from .vinyl import DiscWidget

BG = "#000000"
BG_OPACITY = 0.4
BG_BLUR = 60


class MainWindow(QMainWindow):
    def __init__(self, state: NowPlayingState, page: QWebEnginePage):
        super().__init__()

        self.setWindowTitle("Aesthetic Player")
        self.setMinimumSize(800, 600)

        self.state = state
        self.spin = SpinState(self)
        self.overlay = OverlayState(self.spin, parent=self)

        self._artwork_pixmap = None
        self._animating = False
        self._page_anim = None
        self._bg_margin = 36

        root = QWidget()
        root.setObjectName("Root")
        root_layout = QVBoxLayout(root)
        root_layout.setContentsMargins(0, 0, 0, 0)

        self.bg_label = QLabel(root)
        self.bg_label.setObjectName("BgArt")
        self.bg_label.setAttribute(Qt.WA_TransparentForMouseEvents)
        self.bg_label.setVisible(False)

        self.stack = QStackedWidget()

        self.disc_page = self._build_disc_page()
        self.browser_page = self._build_browser_page(page)

        self.stack.addWidget(self.disc_page)
        self.stack.addWidget(self.browser_page)

        root_layout.addWidget(self.stack)
        self.setCentralWidget(root)

        self._update_background_geometry()
        self.bg_label.lower()
        self.stack.raise_()

        self._apply_styles()

        state.changed.connect(self._refresh_labels)
        state.track_changed.connect(self.spin.on_track)
        state.artwork_changed.connect(self._on_artwork_changed)
        self.overlay.changed.connect(self._on_overlay_changed)

        self._refresh_labels()
        if state.artwork is not None:
            self._on_artwork_changed(state.artwork)

        # Start on the browser so the user can sign in
        if self.overlay.browser_visible:
            self.stack.setCurrentWidget(self.browser_page)
        else:
            self.stack.setCurrentWidget(self.disc_page)
            self.spin.restart()

        self._fade_in_root()

    # ==================================================
    # DISC PAGE
    # ==================================================

    def _build_disc_page(self):
        page = QWidget()
        page.setObjectName("DiscPage")
        layout = QVBoxLayout(page)
        layout.setContentsMargins(24, 24, 24, 50)
        layout.setSpacing(0)

        self.disc = DiscWidget(self.spin)

        self.d_song = QLabel("")
        self.d_song.setObjectName("SongTitle")
        self.d_song.setWordWrap(True)
        self.d_song.setAlignment(Qt.AlignCenter)

        shadow = QGraphicsDropShadowEffect(self.d_song)
        shadow.setBlurRadius(8)
        shadow.setOffset(0, 0)
        self.d_song.setGraphicsEffect(shadow)

        self.d_artist = QLabel("")
        self.d_artist.setObjectName("ArtistName")
        self.d_artist.setWordWrap(True)
        self.d_artist.setAlignment(Qt.AlignCenter)

        self.open_btn = QPushButton("🌐  Open Browser")
        self.open_btn.setObjectName("Glass")
        self.open_btn.setCursor(Qt.PointingHandCursor)
        self.open_btn.clicked.connect(self.overlay.show_browser)

        layout.addWidget(self.disc, 1)
        layout.addSpacing(40)
        layout.addWidget(self.d_song)
        layout.addSpacing(4)
        layout.addWidget(self.d_artist)
        layout.addStretch(1)
        layout.addWidget(self.open_btn, 0, Qt.AlignHCenter)
        return page

    # ==================================================
    # BROWSER PAGE
    # ==================================================

    def _build_browser_page(self, web_page: QWebEnginePage):
        page = QWidget()
        page.setObjectName("BrowserPage")
        layout = QVBoxLayout(page)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        bar = QFrame()
        bar.setObjectName("TopBar")
        h = QHBoxLayout(bar)
        h.setContentsMargins(16, 12, 16, 12)

        heading = QLabel("YouTube Music")
        heading.setObjectName("BarTitle")

        self.hide_btn = QPushButton("Hide Browser")
        self.hide_btn.setObjectName("Prominent")
        self.hide_btn.setCursor(Qt.PointingHandCursor)
        self.hide_btn.clicked.connect(self.overlay.hide_browser)

        h.addWidget(heading)
        h.addStretch()
        h.addWidget(self.hide_btn)

        self.web_view = QWebEngineView()
        self.web_view.setPage(web_page)

        layout.addWidget(bar)
        layout.addWidget(self.web_view, 1)
        return page

    def release_browser(self):
        # The view must let go of the page before the page is deleted.
        self.web_view.hide()
        self.web_view.deleteLater()

    # ==================================================
    # STATE BINDING
    # ==================================================

    def _refresh_labels(self):
        self.d_song.setText(self.state.title)
        self.d_artist.setText(self.state.artist)

    def _on_artwork_changed(self, image: QImage):
        if image is None or image.isNull():
            return
        pix = QPixmap.fromImage(image)
        self._artwork_pixmap = pix
        self.disc.set_artwork(image)
        self._set_background_pixmap(pix)

    def _on_overlay_changed(self, browser_visible: bool):
        self._switch_page(self.browser_page if browser_visible else self.disc_page)

    # ==================================================
    # BACKGROUND
    # ==================================================

    def _set_background_pixmap(self, pixmap: QPixmap):
        if pixmap.isNull():
            return

        self._update_background_geometry()
        target_size = self.bg_label.size()

        scaled = pixmap.scaled(
            target_size,
            Qt.KeepAspectRatioByExpanding,
            Qt.SmoothTransformation,
        )

        composed = QPixmap(target_size)
        composed.fill(Qt.transparent)
        painter = QPainter(composed)
        painter.setOpacity(BG_OPACITY)

        x = (target_size.width() - scaled.width()) // 2
        y = (target_size.height() - scaled.height()) // 2
        painter.drawPixmap(x, y, scaled)
        painter.end()

        self.bg_label.setPixmap(composed)
        self.bg_label.setVisible(True)

        if not isinstance(self.bg_label.graphicsEffect(), QGraphicsBlurEffect):
            blur = QGraphicsBlurEffect(self.bg_label)
            blur.setBlurRadius(BG_BLUR)
            self.bg_label.setGraphicsEffect(blur)

    def _update_background_geometry(self):
        w = self.width()
        h = self.height()
        margin = self._bg_margin
        self.bg_label.setGeometry(-margin, -margin, w + margin * 2, h + margin * 2)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        if self._artwork_pixmap is not None:
            self._set_background_pixmap(self._artwork_pixmap)
        else:
            self._update_background_geometry()

    # ==================================================
    # PAGE TRANSITIONS
    # ==================================================

    def _switch_page(self, target: QWidget):
        current = self.stack.currentWidget()
        if current is target:
            return

        if self._animating and self._page_anim:
            # Jump the running transition to its end before starting the next one
            self._page_anim.setCurrentTime(self._page_anim.duration())
            current = self.stack.currentWidget()
            if current is target:
                return

        self._animating = True
        w = self.stack.width()
        h = self.stack.height()

        target.setGeometry(0, 0, w, h)
        target.show()
        target.raise_()

        current_effect = QGraphicsOpacityEffect(current)
        target_effect = QGraphicsOpacityEffect(target)
        current.setGraphicsEffect(current_effect)
        target.setGraphicsEffect(target_effect)
        target_effect.setOpacity(0.0)

        duration = 260
        ease = QEasingCurve.OutCubic

        anim_current_op = QPropertyAnimation(current_effect, b"opacity")
        anim_current_op.setDuration(duration)
        anim_current_op.setStartValue(1.0)
        anim_current_op.setEndValue(0.0)
        anim_current_op.setEasingCurve(ease)

        anim_target_op = QPropertyAnimation(target_effect, b"opacity")
        anim_target_op.setDuration(duration)
        anim_target_op.setStartValue(0.0)
        anim_target_op.setEndValue(1.0)
        anim_target_op.setEasingCurve(ease)

        group = QParallelAnimationGroup(self)
        group.addAnimation(anim_current_op)
        group.addAnimation(anim_target_op)

        def _finish():
            self.stack.setCurrentWidget(target)
            current.hide()
            current.setGraphicsEffect(None)
            target.setGraphicsEffect(None)
            self._animating = False
            self._page_anim = None

        group.finished.connect(_finish)
        self._page_anim = group
        group.start()

    def _fade_in_root(self):
        effect = QGraphicsOpacityEffect(self.stack)
        self.stack.setGraphicsEffect(effect)
        effect.setOpacity(0.0)

        start_pos = self.stack.pos() + QPoint(0, 10)
        end_pos = self.stack.pos()
        self.stack.move(start_pos)

        anim = QPropertyAnimation(effect, b"opacity")
        anim.setDuration(420)
        anim.setStartValue(0.0)
        anim.setEndValue(1.0)
        anim.setEasingCurve(QEasingCurve.OutCubic)

        move = QPropertyAnimation(self.stack, b"pos")
        move.setDuration(420)
        move.setStartValue(start_pos)
        move.setEndValue(end_pos)
        move.setEasingCurve(QEasingCurve.OutCubic)

        group = QParallelAnimationGroup(self)
        group.addAnimation(anim)
        group.addAnimation(move)
        group.start()

        def _finish():
            self.stack.setGraphicsEffect(None)
            self.stack.move(end_pos)

        group.finished.connect(_finish)
        # Keep a ref so GC doesn't stop the animation
        self._root_fade = group

    # ==================================================
    # STYLES
    # ==================================================

    def _apply_styles(self):
        self.setStyleSheet(f"""
            * {{
                outline: none;
            }}

            QWidget {{
                color: white;
                font-family: -apple-system, BlinkMacSystemFont,
                             "SF Pro Rounded", "Segoe UI", Inter, Arial;
            }}

            QMainWindow, QWidget#Root {{
                background-color: {BG};
            }}

            QStackedWidget, QWidget#DiscPage {{
                background: transparent;
            }}

            QWidget#BrowserPage {{
                background-color: rgba(0,0,0,0.8);
            }}

            QLabel {{
                background: transparent;
                qproperty-textInteractionFlags: NoTextInteraction;
            }}

            QLabel#SongTitle {{
                font-size: 28px;
                font-weight: 800;
            }}

            QLabel#ArtistName {{
                font-size: 18px;
                color: rgba(255,255,255,0.70);
            }}

            QPushButton#Glass {{
                background-color: rgba(255,255,255,0.14);
                border: 1px solid rgba(255,255,255,0.18);
                border-radius: 12px;
                padding: 14px 18px;
                font-size: 14px;
            }}

            QPushButton#Glass:hover {{
                background-color: rgba(255,255,255,0.22);
            }}

            QFrame#TopBar {{
                background-color: black;
            }}

            QLabel#BarTitle {{
                font-size: 15px;
                font-weight: 700;
            }}

            QPushButton#Prominent {{
                background-color: #0a84ff;
                border-radius: 8px;
                padding: 6px 14px;
                font-size: 13px;
                font-weight: 600;
            }}

            QPushButton#Prominent:hover {{
                background-color: #3d9bff;
            }}
        """)
