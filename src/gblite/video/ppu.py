"""
PPU（映像タイミング状態機械）モジュール。

1回の tick() で1ドット（1マシンサイクル = 4 T-state）進み、
OAMSearch → Draw → HBlank を144ライン繰り返した後、VBlankを10ライン経て先頭に戻ります。
"""
import logging
from enum import Enum, auto

from gblite.transport.bus import Bus, BusClient, IO_PAGE_BASE
from gblite.video.display import Display

logger = logging.getLogger(__name__)

WIDTH = 160
HEIGHT = 144

LCDC_ADDRESS = IO_PAGE_BASE + 0x40

# 状態遷移の境界となるドット／ライン
OAM_SEARCH_LAST_DOT = 19
DRAW_LAST_DOT = 62
LINE_LAST_DOT = 113
LAST_VISIBLE_LINE = 143
LAST_LINE = 153

# @intent:responsibility PPUの動作モードを定義します。
class PpuMode(Enum):
    OFF = auto()
    HBLANK = auto()
    VBLANK = auto()
    OAM_SEARCH = auto()
    DRAW = auto()

# @intent:responsibility 走査線とドットの位置を追跡し、定められた境界でフレームを表示面へ出力します。
class Ppu:
    """
    Game Boy のPPUタイミングを模倣する状態機械。
    メモリへはバス経由（クライアント PPU）で読み取りのみ行います。
    """
    def __init__(self, bus: Bus, display: Display):
        self._bus = bus
        self._display = display
        self.mode = PpuMode.OFF
        self.ly = 0
        self.dot = 0
        self.lyc = 0
        self.bg_map_offset = 0
        self.window_map_offset = 0
        self.tile_data_offset = 0
        self.frame_count = 0
        self._display.open(WIDTH, HEIGHT)

    @property
    def display(self) -> Display:
        return self._display

    def is_running(self) -> bool:
        return self.mode != PpuMode.OFF

    # @intent:responsibility 状態機械をフレーム先頭から開始し、直ちに1フレームを出力します。
    def start(self) -> None:
        self.mode = PpuMode.OAM_SEARCH
        self.dot = 0
        self.ly = 0
        self.configure_lcdc(self._bus.read(LCDC_ADDRESS, BusClient.PPU))
        self.render()

    def stop(self) -> None:
        self.mode = PpuMode.OFF

    # @intent:responsibility LCDCの値からVRAM内の各領域のオフセットを決定します。
    def configure_lcdc(self, lcdc: int) -> None:
        self.bg_map_offset = 0x1C00 if lcdc & 0x08 else 0x1800
        self.window_map_offset = 0x1C00 if lcdc & 0x40 else 0x1800
        self.tile_data_offset = 0x0000 if lcdc & 0x10 else 0x0800

    # @intent:responsibility 1ドット分だけ状態機械を進めます。
    # @intent:post-condition モードと (ly, dot) の組は下記の遷移規則によってのみ変化します。
    def tick(self) -> None:
        mode = self.mode
        if mode == PpuMode.OFF:
            return

        if mode == PpuMode.OAM_SEARCH:
            if self.dot == OAM_SEARCH_LAST_DOT:
                self.mode = PpuMode.DRAW
                self.dot = 0
            else:
                self.dot += 1
        elif mode == PpuMode.DRAW:
            if self.dot == DRAW_LAST_DOT:
                self.mode = PpuMode.HBLANK
                self.dot = 0
            else:
                self.dot += 1
        elif mode == PpuMode.HBLANK:
            if self.dot == LINE_LAST_DOT:
                entering_vblank = self.ly == LAST_VISIBLE_LINE
                self.mode = PpuMode.VBLANK if entering_vblank else PpuMode.DRAW
                self.ly += 1
                self.dot = 0
                if entering_vblank:
                    self.render()
            else:
                self.dot += 1
        elif mode == PpuMode.VBLANK:
            if self.dot == LINE_LAST_DOT:
                if self.ly == LAST_LINE:
                    self.mode = PpuMode.OAM_SEARCH
                    self.ly = 0
                else:
                    self.ly += 1
                self.dot = 0
            else:
                self.dot += 1

    # @intent:responsibility フレームを生成し、表示面が開いていれば描画します。閉じていれば停止します。
    def render(self) -> None:
        if not self.is_running():
            return
        self._display.poll_events()
        if self._display.is_open():
            self._display.draw(self.frame_buffer())
            self.frame_count += 1
        else:
            logger.info("Display closed, stopping PPU")
            self.stop()

    # @intent:responsibility 行優先 RGB888 のフレームバッファを返します（横方向のグラデーション）。
    def frame_buffer(self) -> bytes:
        row = bytearray()
        for x in range(WIDTH):
            shade = x * 255 // WIDTH
            row += bytes((shade, shade, shade))
        return bytes(row) * HEIGHT
