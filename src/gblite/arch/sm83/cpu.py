"""
SM83 (Game Boy CPU) エミュレーションの中心モジュール。

このモジュールはSM83の具体的な実装を提供し、AbstractCpuインターフェースを実装します。
命令の名前・長さ・サイクル数は外部の命令テーブルから、実行内容は静的な実行マップから引きます。
"""
from typing import Dict, List, Optional, Tuple

from gblite.core.cpu import AbstractCpu
from gblite.core.snapshot import Operation
from gblite.transport.bus import Bus
from gblite.arch.sm83.state import Sm83CpuState
from gblite.arch.sm83.opcodes import OpcodeTable, CB_PREFIX, extended_opcode
from gblite.arch.sm83.instructions import (
    decode_operation, execute_instruction, is_executable, validate_table
)
from gblite.arch.sm83 import disassembler

# @intent:responsibility SM83 CPUの具体的なエミュレーションロジックを提供します。
class Sm83Cpu(AbstractCpu):
    """
    SM83 CPUをエミュレートするクラス。
    AbstractCpuを継承し、CBプレフィックスの解決と命令テーブルによるデコードを実装します。
    """
    # @intent:responsibility Sm83Cpuの初期化を行います。
    # @intent:pre-condition `opcode_table`は起動時に読み込み済みである必要があります。
    # @intent:post-condition 命令長が実行関数と一致しないテーブルはOpcodeTableErrorとして拒否します。
    def __init__(self, bus: Bus, opcode_table: OpcodeTable):
        validate_table(opcode_table)
        self._opcode_table = opcode_table
        super().__init__(bus)

    @property
    def opcode_table(self) -> OpcodeTable:
        return self._opcode_table

    # @intent:responsibility SM83 CPUの初期状態を生成します。PCはリセットベクタ 0x0000 から開始します。
    def _create_initial_state(self) -> Sm83CpuState:
        return Sm83CpuState()

    # @intent:responsibility 現在のPCからオペコードをフェッチします。
    # @intent:rationale 0xCB の場合は次のバイトと合成して拡張オペコード (0xCB00 | n) を返します。
    def _fetch(self) -> int:
        pc = self._state.pc
        opcode = self._bus.read(pc)
        if opcode == CB_PREFIX:
            return extended_opcode(self._bus.read((pc + 1) & 0xFFFF))
        return opcode

    # @intent:responsibility オペコードを命令テーブルで解決し、Operationを返します。
    # @intent:post-condition 記述子または実行関数が存在しない場合はNone（デコードフォールト）を返します。
    def _decode(self, opcode: int) -> Optional[Operation]:
        descriptor = self._opcode_table.get(opcode)
        if descriptor is None or not is_executable(opcode):
            return None
        return decode_operation(descriptor, self._bus, self._state.pc)

    # @intent:responsibility 命令を実行し、消費したクロック数を返します。
    # @intent:rationale 条件付き分岐が成立した場合は branch_cycles を採用します。
    def _execute(self, operation: Operation) -> int:
        taken = execute_instruction(operation, self._state, self._bus)
        descriptor = self._opcode_table.get(operation.opcode)
        return descriptor.branch_cycles if taken else descriptor.cycles

    def get_register_map(self) -> Dict[str, int]:
        s = self._state
        return {
            "A": s.a, "F": s.f, "B": s.b, "C": s.c, "D": s.d, "E": s.e, "H": s.h, "L": s.l,
            "AF": s.af, "BC": s.bc, "DE": s.de, "HL": s.hl,
            "SP": s.sp, "PC": s.pc,
        }

    def get_flag_state(self) -> Dict[str, bool]:
        s = self._state
        return {"Z": s.flag_z, "N": s.flag_n, "H": s.flag_h, "C": s.flag_c}

    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        return disassembler.disassemble(self._bus, self._opcode_table, start_addr, length)
