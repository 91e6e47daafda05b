"""Pytest configuration and fixtures."""

import os
import sys
import time
from pathlib import Path

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
os.environ.setdefault("QTWEBENGINE_DISABLE_SANDBOX", "1")
os.environ.setdefault("QTWEBENGINE_CHROMIUM_FLAGS", "--disable-gpu")
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from PySide6.QtCore import QBuffer, QCoreApplication, QIODevice, Qt
from PySide6.QtGui import QColor, QImage
from PySide6.QtWidgets import QApplication


@pytest.fixture(scope="session")
def qapp():
    """One QApplication for the whole run."""
    QCoreApplication.setAttribute(Qt.AA_ShareOpenGLContexts)
    app = QApplication.instance() or QApplication([])
    yield app


def wait_until(app, predicate, timeout=3.0):
    """Pump the Qt event loop until predicate() is true or time runs out."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        app.processEvents()
        if predicate():
            return True
        time.sleep(0.01)
    app.processEvents()
    return predicate()


@pytest.fixture
def wait(qapp):
    return lambda predicate, timeout=3.0: wait_until(qapp, predicate, timeout)


def _encode(color, fmt="PNG"):
    image = QImage(4, 4, QImage.Format_RGB32)
    image.fill(QColor(color))
    buffer = QBuffer()
    buffer.open(QIODevice.WriteOnly)
    image.save(buffer, fmt)
    data = bytes(buffer.data())
    buffer.close()
    return data


@pytest.fixture
def red_png():
    return _encode(Qt.red)


@pytest.fixture
def blue_png():
    return _encode(Qt.blue)


@pytest.fixture
def garbage_bytes():
    return b"definitely not an image"
