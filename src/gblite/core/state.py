# gblite/core/state.py
"""
Core Layer (CPU状態)

このモジュールは、CPUの基本的な状態（レジスタ群）を保持するデータ構造を定義します。
"""
from dataclasses import dataclass
from enum import Enum

# @intent:responsibility 命令インタプリタの実行状態を表します。
class RunState(Enum):
    RUNNING = "RUNNING"
    HALTED = "HALTED"   # HALT/STOP 命令による終端状態
    FAULTED = "FAULTED" # 未定義命令・範囲外ジャンプによる終端状態

# @intent:responsibility CPUのレジスタ状態を保持します。アーキテクチャ固有のレジスタはこれを拡張します。
@dataclass
class CpuState:
    """
    CPUのレジスタ状態を保持するデータクラス。
    これは抽象的な基底状態であり、特定のCPUアーキテクチャに応じて拡張されます。
    """
    pc: int = 0x0000  # Program Counter
    sp: int = 0x0000  # Stack Pointer
    run_state: RunState = RunState.RUNNING

    @property
    def can_continue(self) -> bool:
        return self.run_state == RunState.RUNNING
