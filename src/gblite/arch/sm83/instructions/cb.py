"""
SM83 0xCB プレフィックス命令（ローテート、シフト、SWAP、ビット操作）の実装。

拡張オペコード 0xCB00 | n の下位バイト n を次のように解釈します:
ビット7-6 = 種別 (00: ローテート/シフト, 01: BIT, 10: RES, 11: SET)、
ビット5-3 = 演算番号またはビット番号、ビット2-0 = 対象レジスタ。
"""
from gblite.arch.sm83.state import Sm83CpuState
from gblite.arch.sm83.alu import rotate_shift8, check_bit
from gblite.core.snapshot import Operation
from gblite.transport.bus import Bus
from .base import get_register_value, set_register_value

def _fields(operation: Operation):
    cb_opcode = operation.opcode & 0xFF
    return (cb_opcode >> 3) & 0b111, cb_opcode & 0b111

# @intent:responsibility RLC/RRC/RL/RR/SLA/SRA/SWAP/SRL r を実行します。
def execute_cb_shift(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    op_index, code = _fields(operation)
    value = get_register_value(state, bus, code)
    set_register_value(state, bus, code, rotate_shift8(state, op_index, value))

# @intent:responsibility BIT b,r を実行します。対象は書き換えません。
def execute_cb_bit(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    bit, code = _fields(operation)
    check_bit(state, bit, get_register_value(state, bus, code))

# @intent:responsibility RES b,r を実行します。フラグは変化しません。
def execute_cb_res(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    bit, code = _fields(operation)
    value = get_register_value(state, bus, code)
    set_register_value(state, bus, code, value & ~(1 << bit))

# @intent:responsibility SET b,r を実行します。フラグは変化しません。
def execute_cb_set(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    bit, code = _fields(operation)
    value = get_register_value(state, bus, code)
    set_register_value(state, bus, code, value | (1 << bit))
