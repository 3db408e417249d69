import logging
from typing import Optional

from gblite.transport.bus import Bus
from gblite.arch.sm83.cpu import Sm83Cpu
from gblite.arch.sm83.opcodes import OpcodeTable, DEFAULT_TABLE_PATH
from gblite.arch.sm83.state import Reg8, Reg16
from gblite.loader.loader import RomLoader
from gblite.video.display import Display, HeadlessDisplay
from gblite.video.ppu import Ppu
from gblite.emulator.driver import EmulationDriver
from .loader import ConfigError
from .models import EmulatorConfig, CpuInitialState, DisplayConfig

logger = logging.getLogger(__name__)

# @intent:responsibility システム構成（Config）に基づいて、Bus、CPU、表示面、PPUを生成・接続し、初期状態を適用します。
class SystemBuilder:
    def build_system(self, config: EmulatorConfig, display: Optional[Display] = None) -> EmulationDriver:
        """
        構成からドライバを組み立てて返します。
        display を渡した場合は構成の表示設定より優先されます。
        """
        table = OpcodeTable.load_from_file(config.opcode_table or DEFAULT_TABLE_PATH)

        bus = Bus()
        if config.rom:
            RomLoader().load_binary(config.rom, bus)

        cpu = Sm83Cpu(bus, table)
        self.apply_initial_state(cpu, config.initial_state)

        if display is None:
            display = self.create_display(config.display)
        ppu = Ppu(bus, display)

        return EmulationDriver(cpu, ppu)

    # @intent:responsibility 表示設定に応じた表示面を生成します。
    def create_display(self, display_config: DisplayConfig) -> Display:
        if display_config.headless:
            return HeadlessDisplay(frame_limit=display_config.frame_limit, keep_frames=False)
        # PySide6はGUIを使う場合にのみ読み込む
        from gblite.ui.lcd_window import LcdWindow
        return LcdWindow(scale=display_config.scale)

    # @intent:responsibility Configで定義された初期状態をCPUに適用します。
    def apply_initial_state(self, cpu: Sm83Cpu, config_state: CpuInitialState):
        """
        CPUをリセットし、Configから指定された初期値を適用します。
        """
        cpu.reset()
        state = cpu.get_state()

        state.pc = config_state.pc & 0xFFFF
        state.sp = config_state.sp & 0xFFFF
        if config_state.ime is not None:
            state.ime = config_state.ime

        for reg_name, value in config_state.registers.items():
            if reg_name == "f":
                # 下位ニブルは常に0
                state.f = value & 0xF0
                continue
            state.set(self._lookup_register(reg_name), value)

    def _lookup_register(self, name: str):
        for enum_type in (Reg8, Reg16):
            try:
                return enum_type(name)
            except ValueError:
                continue
        raise ConfigError(f"Unknown register in initial_state: {name}")
