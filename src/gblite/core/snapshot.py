# gblite/core/snapshot.py
"""
実行状態の不変スナップショット

このモジュールは、1命令の実行直後のCPUとバスの状態を記録した不変のデータ構造を定義します。
トレース出力と、テスト・デバッグ時の状態記録に用いる責務を負います。
"""
from dataclasses import dataclass, field
from typing import List, Optional

from gblite.core.state import CpuState
from gblite.transport.bus import BusAccess

# @intent:responsibility 実行された命令の詳細を記録します。
@dataclass(frozen=True) # 不変データ構造
class Operation:
    """
    実行された命令の詳細（HEX、ニーモニック、オペランド）を記録するデータクラス。
    """
    opcode_hex: str # 例: "C3", CB命令は "CB7C"
    mnemonic: str # 例: "JP a16"
    address: int = 0x0000 # 命令の先頭アドレス
    operand_bytes: List[int] = field(default_factory=list) # 生のオペランドバイト
    cycle_count: int = 0 # 命令実行に必要なクロックサイクル数
    length: int = 1 # 命令のバイト長

    @property
    def opcode(self) -> int:
        return int(self.opcode_hex, 16)

    # @intent:responsibility トレース出力用の1行表現を返します。
    def format_trace(self) -> str:
        line = f"0x{self.address:04x}: {self.mnemonic} - {self.cycle_count} cycles"
        if self.operand_bytes:
            line += " - operands: " + " ".join(f"0x{b:02x}" for b in self.operand_bytes)
        return line

# @intent:responsibility 実行に関するメタデータを記録します。
@dataclass(frozen=True) # 不変データ構造
class Metadata:
    """
    実行に関するメタデータ（累計サイクル数など）を記録するデータクラス。
    """
    cycle_count: int
    symbol_info: Optional[str] = None

# @intent:responsibility ある一時点におけるCPUとバスの状態を不変に記録します。
@dataclass(frozen=True) # 不変データ構造
class Snapshot:
    """
    ある一時点における、CPUとバスの状態を記録した不変のデータ構造。
    state は生成時にコピーされるため、以降のCPUの実行で変化しません。
    """
    state: CpuState
    operation: Operation
    metadata: Metadata
    bus_activity: List[BusAccess] = field(default_factory=list)
