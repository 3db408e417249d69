"""
SM83命令セット実装のための共通ヘルパー関数と定数。

スタック操作 (push/pop)、コール/リターン、相対ジャンプなどの制御フローの基本操作もここに置きます。
"""
import logging
from typing import List, Optional

from gblite.arch.sm83.state import Sm83CpuState, Reg8, Reg16
from gblite.core.state import RunState
from gblite.core.cpu import enter_fault
from gblite.core.snapshot import Operation
from gblite.transport.bus import Bus

logger = logging.getLogger(__name__)

# オペコード中の3bitレジスタフィールド。None は (HL) 間接参照を表す。
REGISTER_CODES: List[Optional[Reg8]] = [
    Reg8.B, Reg8.C, Reg8.D, Reg8.E, Reg8.H, Reg8.L, None, Reg8.A
]

# 16bit演算・ロード用のペア (rr)
RP_CODES = [Reg16.BC, Reg16.DE, Reg16.HL, Reg16.SP]

# PUSH/POP 用のペア (qq)
RP2_CODES = [Reg16.BC, Reg16.DE, Reg16.HL, Reg16.AF]

# @intent:utility_function レジスタコード（または(HL)）に基づいて現在の値を取得します。
def get_register_value(state: Sm83CpuState, bus: Bus, code: int) -> int:
    reg = REGISTER_CODES[code & 0b111]
    if reg is None:
        return bus.read(state.hl)
    return state.get(reg)

# @intent:utility_function レジスタコード（または(HL)）に値を設定します。
def set_register_value(state: Sm83CpuState, bus: Bus, code: int, value: int) -> None:
    reg = REGISTER_CODES[code & 0b111]
    if reg is None:
        bus.write(state.hl, value & 0xFF)
    else:
        state.set(reg, value)

# @intent:utility_function 条件コード (NZ, Z, NC, C) を評価します。
def condition_met(state: Sm83CpuState, cc_code: int) -> bool:
    cc_code &= 0b11
    if cc_code == 0:
        return not state.flag_z
    if cc_code == 1:
        return state.flag_z
    if cc_code == 2:
        return not state.flag_c
    return state.flag_c

# @intent:utility_function 8bit即値オペランドを返します。
def imm8(operation: Operation) -> int:
    return operation.operand_bytes[0]

# @intent:utility_function 16bit即値オペランド（リトルエンディアン）を返します。
def imm16(operation: Operation) -> int:
    low, high = operation.operand_bytes[0], operation.operand_bytes[1]
    return (high << 8) | low

# @intent:utility_function 8bit値を2の補数として符号付き整数に変換します。
def signed8(value: int) -> int:
    return value - 0x100 if value & 0x80 else value

# @intent:responsibility 16bit値をスタックに積みます。SPを2減らしてから下位バイトを先に書き込みます。
def push16(state: Sm83CpuState, bus: Bus, value: int) -> None:
    state.sub(Reg16.SP, 2)
    bus.write16(state.sp, value & 0xFFFF)

# @intent:responsibility スタックから16bit値を取り出します。読み出し後にSPを2増やします。
def pop16(state: Sm83CpuState, bus: Bus) -> int:
    value = bus.read16(state.sp)
    state.add(Reg16.SP, 2)
    return value

# @intent:responsibility 戻りアドレス（PCは命令長分進んでいる）を積み、ターゲットへ分岐します。
def call(state: Sm83CpuState, bus: Bus, target: int) -> None:
    push16(state, bus, state.pc)
    state.pc = target & 0xFFFF

# @intent:responsibility スタックトップをPCに戻します。enable_ime はRETIの割り込み許可に使います。
def ret(state: Sm83CpuState, bus: Bus, enable_ime: bool = False) -> None:
    state.pc = pop16(state, bus)
    if enable_ime:
        state.ime = True

# @intent:responsibility 進めた後のPCに符号付き8bitオフセットを加えて分岐します。
# @intent:rationale 16bit空間を外れる分岐はアドレスの折り返しではなく致命的エラー(FAULTED)として扱います。
def jump_relative(state: Sm83CpuState, offset: int) -> None:
    target = state.pc + signed8(offset)
    if target < 0 or target > 0xFFFF:
        enter_fault(state, f"relative jump out of bounds ({target:#x}) from {state.pc:#06x}")
        return
    state.pc = target

# @intent:responsibility HALT/STOP命令によりHALTED状態に遷移します。
def enter_halt(state: Sm83CpuState, message: str) -> None:
    state.run_state = RunState.HALTED
    logger.info("%s", message)
