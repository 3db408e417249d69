"""
LCDウィンドウモジュール。

PPUが生成したフレームをPySide6のウィンドウに表示します。
イベントループは回さず、PPUからの poll_events() のたびに保留イベントだけを処理します。
"""
import logging
import sys
from typing import Optional

from PySide6.QtWidgets import QApplication, QWidget
from PySide6.QtCore import Qt
from PySide6.QtGui import QImage, QPainter, QKeyEvent, QCloseEvent, QPaintEvent

from gblite.video.display import Display

logger = logging.getLogger(__name__)

# @intent:responsibility フレームバッファを拡大表示するウィジェット。
class LcdWidget(QWidget):
    def __init__(self, scale: int, parent=None):
        super().__init__(parent)
        self.scale = scale
        self.closed = False
        self._image: Optional[QImage] = None
        self.setWindowTitle("gblite")

    def set_frame(self, pixels: bytes, width: int, height: int) -> None:
        # QImageはバッファを参照するだけなので copy() で所有させる
        self._image = QImage(pixels, width, height, width * 3, QImage.Format.Format_RGB888).copy()
        self.update()

    def paintEvent(self, event: QPaintEvent):
        if self._image is None:
            return
        painter = QPainter(self)
        painter.drawImage(self.rect(), self._image)
        painter.end()

    # @intent:responsibility Escapeキーでウィンドウを閉じます。
    def keyPressEvent(self, event: QKeyEvent):
        if event.key() == Qt.Key.Key_Escape:
            self.close()
        else:
            super().keyPressEvent(event)

    def closeEvent(self, event: QCloseEvent):
        self.closed = True
        event.accept()

# @intent:responsibility PySide6によるDisplay実装を提供します。
class LcdWindow(Display):
    """
    画面サイズ×scale のウィンドウを表示します。
    ウィンドウが閉じられるかEscapeが押されると is_open() が False になります。
    """
    def __init__(self, scale: int = 3):
        if scale < 1:
            raise ValueError(f"Invalid scale: {scale}")
        self.scale = scale
        self.width = 0
        self.height = 0
        self._app = QApplication.instance() or QApplication(sys.argv)
        self._widget: Optional[LcdWidget] = None

    def open(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self._widget = LcdWidget(self.scale)
        self._widget.setFixedSize(width * self.scale, height * self.scale)
        self._widget.show()
        logger.info("Opened %dx%d LCD window (scale %d)", width, height, self.scale)

    def draw(self, pixels: bytes) -> None:
        if self._widget is not None:
            self._widget.set_frame(pixels, self.width, self.height)

    def poll_events(self) -> None:
        self._app.processEvents()

    def is_open(self) -> bool:
        return self._widget is not None and not self._widget.closed

    def close(self) -> None:
        if self._widget is not None and not self._widget.closed:
            self._widget.close()
