"""
SM83 制御命令（分岐、コール/リターン、リスタート、システム制御）の実装。

条件付き命令は分岐が成立したかどうかを bool で返します。CPUはこれを見てサイクル数を選びます。
"""
from gblite.arch.sm83.state import Sm83CpuState
from gblite.core.snapshot import Operation
from gblite.transport.bus import Bus
from .base import (
    imm8, imm16, condition_met, call, ret, jump_relative, enter_halt
)

def execute_nop(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    pass

# @intent:responsibility HALT: 命令ストリームの進行を終了します。
# @intent:rationale 割り込みディスパッチは実装しないため、HALTからの復帰は発生せず終端状態になります。
def execute_halt(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    enter_halt(state, "Encountered HALT instruction, exiting!")

# @intent:responsibility STOP: HALTと同じく終端状態に遷移しますが、診断メッセージは区別します。
def execute_stop(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    enter_halt(state, "Encountered STOP instruction, exiting!")

# @intent:responsibility JR r8 を実行します。
def execute_jr(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    jump_relative(state, imm8(operation))

# @intent:responsibility JR cc,r8 を実行します。
def execute_jr_cc(state: Sm83CpuState, bus: Bus, operation: Operation) -> bool:
    if not condition_met(state, (operation.opcode >> 3) & 0b11):
        return False
    jump_relative(state, imm8(operation))
    return True

# @intent:responsibility JP a16 を実行します。
def execute_jp(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    state.pc = imm16(operation)

# @intent:responsibility JP cc,a16 を実行します。
def execute_jp_cc(state: Sm83CpuState, bus: Bus, operation: Operation) -> bool:
    if not condition_met(state, (operation.opcode >> 3) & 0b11):
        return False
    state.pc = imm16(operation)
    return True

# @intent:responsibility JP (HL) を実行します。
def execute_jp_hl(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    state.pc = state.hl

# @intent:responsibility CALL a16 を実行します。
def execute_call(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    call(state, bus, imm16(operation))

# @intent:responsibility CALL cc,a16 を実行します。
def execute_call_cc(state: Sm83CpuState, bus: Bus, operation: Operation) -> bool:
    if not condition_met(state, (operation.opcode >> 3) & 0b11):
        return False
    call(state, bus, imm16(operation))
    return True

# @intent:responsibility RET を実行します。
def execute_ret(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    ret(state, bus)

# @intent:responsibility RET cc を実行します。
def execute_ret_cc(state: Sm83CpuState, bus: Bus, operation: Operation) -> bool:
    if not condition_met(state, (operation.opcode >> 3) & 0b11):
        return False
    ret(state, bus)
    return True

# @intent:responsibility RETI: リターンし、割り込み許可ラッチを再度有効にします。
def execute_reti(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    ret(state, bus, enable_ime=True)

# @intent:responsibility RST n: 固定ベクタ (0x00, 0x08, ... 0x38) へのコールを実行します。
def execute_rst(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    call(state, bus, operation.opcode & 0x38)

def execute_di(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    state.ime = False

def execute_ei(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    state.ime = True
