from dataclasses import dataclass, field
from typing import Dict, Optional

@dataclass
class CpuInitialState:
    pc: int = 0x0000
    sp: int = 0x0000
    ime: Optional[bool] = None # None の場合はCPU既定値（有効）
    registers: Dict[str, int] = field(default_factory=dict)

@dataclass
class DisplayConfig:
    headless: bool = False
    scale: int = 3
    frame_limit: Optional[int] = None # ヘッドレス時のみ有効

@dataclass
class EmulatorConfig:
    rom: Optional[str] = None
    opcode_table: Optional[str] = None # None の場合は同梱テーブル
    initial_state: CpuInitialState = field(default_factory=CpuInitialState)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    max_steps: Optional[int] = None
    trace: bool = False
