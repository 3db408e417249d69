"""
表示面（ディスプレイ）のインターフェース定義とヘッドレス実装。

PPUはこのインターフェースだけを通してフレームを出力します。
GUI実装は `gblite.ui.lcd_window` にあります。
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

logger = logging.getLogger(__name__)

# @intent:responsibility PPUが描画先として利用する表示面の抽象インターフェースを定義します。
class Display(ABC):
    """
    フレームを受け取る表示面。
    pixels は width*height*3 バイトの行優先RGBバッファです。
    """
    @abstractmethod
    def open(self, width: int, height: int) -> None:
        pass

    @abstractmethod
    def draw(self, pixels: bytes) -> None:
        pass

    # @intent:responsibility 保留中のイベントを待たずに処理します。
    @abstractmethod
    def poll_events(self) -> None:
        pass

    @abstractmethod
    def is_open(self) -> bool:
        pass

    @abstractmethod
    def close(self) -> None:
        pass

# @intent:responsibility ウィンドウを持たず、受け取ったフレームを記録する表示面を提供します。
class HeadlessDisplay(Display):
    """
    テストやバッチ実行用の表示面。
    frame_limit を指定すると、その枚数を描画した時点で閉じた扱いになります。
    """
    def __init__(self, frame_limit: Optional[int] = None, keep_frames: bool = True):
        self.frame_limit = frame_limit
        self.keep_frames = keep_frames
        self.width = 0
        self.height = 0
        self.frames: List[bytes] = []
        self.frames_drawn = 0
        self._open = False

    def open(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self._open = True

    def draw(self, pixels: bytes) -> None:
        expected = self.width * self.height * 3
        if len(pixels) != expected:
            raise ValueError(f"Frame size mismatch: expected {expected} bytes, got {len(pixels)}")
        if self.keep_frames:
            self.frames.append(bytes(pixels))
        self.frames_drawn += 1

    def poll_events(self) -> None:
        if self.frame_limit is not None and self.frames_drawn >= self.frame_limit and self._open:
            logger.info("Frame limit reached (%d), closing display", self.frame_limit)
            self.close()

    def is_open(self) -> bool:
        return self._open

    def close(self) -> None:
        self._open = False
