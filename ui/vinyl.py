# ui/vinyl.py
from typing import Optional

from PySide6.QtCore import Property, QEasingCurve, QPointF, QPropertyAnimation, QRectF, Qt
from PySide6.QtGui import QBrush, QColor, QImage, QLinearGradient, QPainter, QPainterPath, QPen, QPixmap
from PySide6.QtWidgets import QSizePolicy, QWidget

from .presentation import SpinState

SPIN_PERIOD_MS = 8000
RECORD_RATIO = 0.5
RECORD_MAX = 300
LABEL_RATIO = 0.2
LABEL_MAX = 120
PIN_SIZE = 8


class DiscWidget(QWidget):
    def __init__(self, spin: SpinState, parent=None):
        super().__init__(parent)
        self.spin = spin
        self._angle = 0.0
        self._artwork: Optional[QPixmap] = None
        self._label_pixmap: Optional[QPixmap] = None

        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.setMinimumHeight(220)

        anim = QPropertyAnimation(self, b"angle", self)
        anim.setDuration(SPIN_PERIOD_MS)
        anim.setStartValue(0.0)
        anim.setEndValue(360.0)
        anim.setEasingCurve(QEasingCurve.Linear)
        anim.setLoopCount(-1)
        self._anim = anim

        spin.restarted.connect(self.restart)
        spin.spinning_changed.connect(self._on_spinning_changed)

    # ==================================================
    # ROTATION
    # ==================================================

    def _get_angle(self) -> float:
        return self._angle

    def _set_angle(self, value: float):
        self._angle = float(value) % 360.0
        self.update()

    angle = Property(float, _get_angle, _set_angle)

    def restart(self):
        self._anim.stop()
        self._set_angle(0.0)
        self._anim.start()

    def is_rotating(self) -> bool:
        return self._anim.state() == QPropertyAnimation.Running

    def _on_spinning_changed(self, spinning: bool):
        if not spinning:
            self._anim.stop()

    # ==================================================
    # ARTWORK
    # ==================================================

    def set_artwork(self, image: QImage):
        if image is None or image.isNull():
            return
        self._artwork = QPixmap.fromImage(image)
        self._rescale_label()
        self.update()

    def _rescale_label(self):
        # Scaled once per artwork or size change, not per animation frame.
        if self._artwork is None or self._artwork.isNull():
            self._label_pixmap = None
            return
        size = max(1, int(self.label_diameter()))
        self._label_pixmap = self._artwork.scaled(
            size, size,
            Qt.KeepAspectRatioByExpanding,
            Qt.SmoothTransformation,
        )

    def label_pixmap(self) -> Optional[QPixmap]:
        return self._label_pixmap

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self._rescale_label()

    def record_diameter(self) -> float:
        return min(self.width() * RECORD_RATIO, RECORD_MAX, self.height())

    def label_diameter(self) -> float:
        return min(self.width() * LABEL_RATIO, LABEL_MAX, self.height())

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHints(QPainter.Antialiasing | QPainter.SmoothPixmapTransform)

        center = QPointF(self.width() / 2, self.height() / 2)
        record = self.record_diameter()
        label = self.label_diameter()

        # Shadow, then the record itself
        painter.setPen(Qt.NoPen)
        painter.setBrush(QColor(0, 0, 0, 110))
        painter.drawEllipse(center + QPointF(0, 10), record / 2 + 4, record / 2 + 4)

        record_rect = QRectF(center.x() - record / 2, center.y() - record / 2, record, record)
        gradient = QLinearGradient(record_rect.topLeft(), record_rect.bottomRight())
        gradient.setColorAt(0.0, QColor(128, 128, 128, 26))
        gradient.setColorAt(1.0, QColor(0, 0, 0))
        painter.setBrush(QBrush(gradient))
        painter.drawEllipse(record_rect)

        # Grooves
        painter.setBrush(Qt.NoBrush)
        painter.setPen(QPen(QColor(255, 255, 255, 14), 1))
        step = max(4.0, record / 40)
        r = label / 2 + step
        while r < record / 2 - step:
            painter.drawEllipse(center, r, r)
            r += step

        # Rotating label
        painter.save()
        painter.translate(center)
        painter.rotate(self._angle)
        label_rect = QRectF(-label / 2, -label / 2, label, label)
        clip = QPainterPath()
        clip.addEllipse(label_rect)
        painter.setClipPath(clip)
        scaled = self._label_pixmap
        if scaled is not None:
            painter.drawPixmap(
                int(-scaled.width() / 2), int(-scaled.height() / 2), scaled
            )
        else:
            painter.fillRect(label_rect, QColor(128, 128, 128, 77))
        painter.restore()

        # Pin
        painter.setPen(Qt.NoPen)
        painter.setBrush(QColor(255, 255, 255, 51))
        painter.drawEllipse(center, PIN_SIZE / 2, PIN_SIZE / 2)
        painter.end()
