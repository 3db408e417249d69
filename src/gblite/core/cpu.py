# gblite/core/cpu.py
"""
Core Layer (抽象CPU)

このモジュールは、CPUの基本的な状態管理と命令サイクルの駆動に関する抽象化を提供します。
具体的な命令の振る舞いはInstruction Layerに移譲されます。
"""
import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from gblite.transport.bus import Bus
from gblite.core.snapshot import Snapshot, Operation, Metadata
from gblite.core.state import CpuState, RunState

logger = logging.getLogger(__name__)
trace_logger = logging.getLogger("gblite.trace")

# @intent:responsibility 致命的なエミュレーションエラーを記録し、FAULTED状態に遷移します。
# @intent:rationale デコード時のフォールトも命令実行中のフォールトもこの関数を通ります。
def enter_fault(state: CpuState, message: str) -> None:
    state.run_state = RunState.FAULTED
    logger.error("Fatal error: %s", message)

# @intent:responsibility 抽象CPUの基本機能とインターフェースを定義します。
class AbstractCpu(ABC):
    """
    全てのCPUエミュレーションの基底となる抽象クラス。
    Busとのインターフェース、実行状態（RUNNING/HALTED/FAULTED）の管理、命令サイクルの抽象化を提供します。
    """
    # @intent:responsibility CPUの状態とバスへの参照を初期化します。
    # @intent:pre-condition `bus`は有効なBusオブジェクトである必要があります。
    def __init__(self, bus: Bus):
        self._bus = bus
        self._state: CpuState = self._create_initial_state()
        self._cycle_count: int = 0
        self._last_cycles: int = 0
        self._last_snapshot: Optional[Snapshot] = None
        # @intent:rationale Stateオブジェクトの直接操作を避けるため、protectedな命名規則を採用。
        #                  外部からのアクセスは`get_state()`メソッドを介して行う。

    # @intent:responsibility 初期状態のCpuStateオブジェクトを生成します。
    @abstractmethod
    def _create_initial_state(self) -> CpuState:
        """
        CPUの初期状態を生成して返します。
        """
        pass

    # @intent:responsibility CPUをリセットし、初期状態に戻します。
    def reset(self) -> None:
        self._state = self._create_initial_state()
        self._cycle_count = 0
        self._last_cycles = 0
        self._last_snapshot = None

    # @intent:responsibility 現在のCPUの状態を返します。
    def get_state(self) -> CpuState:
        return self._state

    @property
    def run_state(self) -> RunState:
        return self._state.run_state

    @property
    def cycle_count(self) -> int:
        """リセット以降に消費した累計クロック数。"""
        return self._cycle_count

    @property
    def last_cycles(self) -> int:
        """直前に実行した命令のクロック数。命令が実行されなかった場合は0。"""
        return self._last_cycles

    @property
    def last_snapshot(self) -> Optional[Snapshot]:
        return self._last_snapshot

    # @intent:responsibility PCから次の命令（オペコード）をフェッチします。
    @abstractmethod
    def _fetch(self) -> int:
        """
        現在のPCからオペコードを読み取り返します。PCはここでは更新しません。
        """
        pass

    # @intent:responsibility フェッチしたオペコードを解析し、Operationオブジェクトに変換します。
    # @intent:post-condition 未定義のオペコードの場合はNoneを返します。
    @abstractmethod
    def _decode(self, opcode: int) -> Optional[Operation]:
        pass

    # @intent:responsibility デコードされた命令を実行し、CPUの状態を更新します。
    # @intent:post-condition 実際に消費したクロック数を返します。
    @abstractmethod
    def _execute(self, operation: Operation) -> int:
        pass

    # @intent:responsibility CPUを1命令サイクル進め、その結果のスナップショットを返します。
    # @intent:rationale Template Methodパターンを採用し、共通の実行フロー（ログクリア→フェッチ→デコード→PC更新→実行→Snapshot生成）を定義します。
    def step(self) -> Optional[Snapshot]:
        """
        CPUを1命令進めます。HALTED/FAULTED状態、または未定義命令の場合はNoneを返します。
        """
        self._last_cycles = 0
        # 1. 終端状態では何もしない
        if not self._state.can_continue:
            return None

        # 2. 前処理: 前サイクルまでの残存ログを破棄
        self._bus.get_and_clear_activity_log()
        initial_pc = self._state.pc

        # 3. フェッチ & デコード
        opcode = self._fetch()
        operation = self._decode(opcode)
        if operation is None:
            enter_fault(self._state, f"undefined instruction {opcode:#06x} at {initial_pc:#06x}")
            return None

        # 4. PC更新: 分岐命令が無条件にPCを上書きできるよう、実行前に命令長分進める
        self._update_pc(operation)

        # 5. 実行
        cycles = self._execute(operation)
        operation = replace(operation, cycle_count=cycles)
        if trace_logger.isEnabledFor(logging.DEBUG):
            trace_logger.debug("%s", operation.format_trace())

        # 6. 後処理 & Snapshot生成
        self._last_cycles = cycles
        self._last_snapshot = self._create_snapshot(operation)
        return self._last_snapshot

    # @intent:responsibility 1命令を実行し、続行可能かどうかを返します。
    def process(self) -> bool:
        """
        1命令実行し、HALTED/FAULTEDでなければTrueを返します。
        """
        self.step()
        return self._state.can_continue

    # @intent:responsibility 命令実行前にPCを更新します。
    def _update_pc(self, operation: Operation) -> None:
        self._state.pc = (self._state.pc + operation.length) & 0xFFFF

    # @intent:responsibility スナップショットを生成します。
    # @intent:rationale 状態はコピーして保持し、後続の命令実行でスナップショットが変化しないようにします。
    def _create_snapshot(self, operation: Operation) -> Snapshot:
        bus_activity = self._bus.get_and_clear_activity_log()
        self._cycle_count += operation.cycle_count
        return Snapshot(
            state=copy.copy(self._state),
            operation=operation,
            metadata=Metadata(cycle_count=self._cycle_count, symbol_info=operation.mnemonic),
            bus_activity=bus_activity
        )

    @abstractmethod
    def get_register_map(self) -> Dict[str, int]:
        """
        現在のレジスタ値を辞書形式で返す。
        """
        pass

    @abstractmethod
    def get_flag_state(self) -> Dict[str, bool]:
        """
        現在のフラグの各ビットの状態を辞書形式で返す。
        """
        pass

    @abstractmethod
    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        """
        指定されたメモリ範囲を逆アセンブルし、(address, hex_bytes, mnemonic) のタプルリストを返す。
        """
        pass
