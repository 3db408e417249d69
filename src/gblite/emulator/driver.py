"""
エミュレーションドライバ。

CPUを1命令進め、その命令のクロック数に相当するドット数だけPPUを進める、を繰り返します。
"""
import logging
from enum import Enum, auto
from typing import Optional

from gblite.core.cpu import AbstractCpu
from gblite.core.state import RunState
from gblite.video.ppu import Ppu

logger = logging.getLogger(__name__)

# 1ドット（マシンサイクル）あたりのクロック数
CYCLES_PER_DOT = 4

# @intent:responsibility 実行ループが終了した理由を表します。
class StopReason(Enum):
    HALTED = auto()
    FAULTED = auto()
    DISPLAY_CLOSED = auto()
    STEP_LIMIT = auto()

# @intent:responsibility CPUとPPUを同期させながら実行ループを駆動します。
# @intent:rationale PPUは命令の途中のメモリ状態を観測しません（命令完了後にまとめてtickします）。
class EmulationDriver:
    def __init__(self, cpu: AbstractCpu, ppu: Ppu):
        self.cpu = cpu
        self.ppu = ppu
        self.steps = 0

    # @intent:responsibility 1命令を実行し、対応するドット数だけPPUを進めます。
    def step(self) -> bool:
        running = self.cpu.process()
        self.steps += 1
        for _ in range(self.cpu.last_cycles // CYCLES_PER_DOT):
            self.ppu.tick()
        return running

    # @intent:responsibility CPUが停止するか、表示面が閉じるか、命令数の上限に達するまで実行します。
    def run(self, max_steps: Optional[int] = None) -> StopReason:
        self.ppu.start()
        while True:
            if not self.ppu.is_running():
                reason = StopReason.DISPLAY_CLOSED
                break
            if max_steps is not None and self.steps >= max_steps:
                reason = StopReason.STEP_LIMIT
                break
            if not self.step():
                reason = StopReason.FAULTED if self.cpu.run_state == RunState.FAULTED else StopReason.HALTED
                break

        logger.info(
            "Emulation stopped: %s after %d steps, %d cycles, %d frames",
            reason.name, self.steps, self.cpu.cycle_count, self.ppu.frame_count
        )
        return reason
