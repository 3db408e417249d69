"""
SM83 算術論理演算 (ALU) 命令の実装。
"""
from gblite.arch.sm83.state import Sm83CpuState, Reg16
from gblite.arch.sm83.alu import (
    AluOp, alu8, complement, inc_dec8, add16, add_sp_offset,
    decimal_adjust, set_carry, rotate_shift8
)
from gblite.core.snapshot import Operation
from gblite.transport.bus import Bus
from .base import RP_CODES, get_register_value, set_register_value, imm8, signed8

# @intent:responsibility ADD/ADC/SUB/SBC/AND/XOR/OR/CP r または (HL) を実行します (0x80-0xBF)。
def execute_alu_r(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    op = AluOp((operation.opcode >> 3) & 0b111)
    alu8(state, op, get_register_value(state, bus, operation.opcode & 0b111))

# @intent:responsibility 即値オペランドのALU命令を実行します (0xC6, 0xCE, ... 0xFE)。
def execute_alu_d8(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    op = AluOp((operation.opcode >> 3) & 0b111)
    alu8(state, op, imm8(operation))

# @intent:responsibility 8bit INC/DEC (レジスタまたは(HL)) を実行します。
def execute_inc_dec8(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    code = (operation.opcode >> 3) & 0b111
    is_inc = (operation.opcode & 1) == 0
    value = get_register_value(state, bus, code)
    set_register_value(state, bus, code, inc_dec8(state, value, is_inc))

# @intent:responsibility 16bit INC/DEC を実行します。フラグは変化せず、0-65535で折り返します。
def execute_inc_dec16(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    reg = RP_CODES[(operation.opcode >> 4) & 0b11]
    if (operation.opcode & 0x0F) == 0x03:
        state.add(reg, 1)
    else:
        state.sub(reg, 1)

# @intent:responsibility ADD HL,rr を実行します。
def execute_add_hl_rr(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    reg = RP_CODES[(operation.opcode >> 4) & 0b11]
    state.hl = add16(state, state.hl, state.get(reg))

# @intent:responsibility ADD SP,r8 を実行します。
def execute_add_sp_e(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    state.set(Reg16.SP, add_sp_offset(state, signed8(imm8(operation))))

def execute_daa(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    decimal_adjust(state)

def execute_cpl(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    complement(state)

def execute_scf(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    set_carry(state)

def execute_ccf(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    set_carry(state, complement_carry=True)

# @intent:responsibility RLCA/RRCA/RLA/RRA を実行します。CB版と異なりZフラグは常にクリアされます。
def execute_rotate_a(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    op_index = (operation.opcode >> 3) & 0b11 # 0:RLC 1:RRC 2:RL 3:RR
    state.a = rotate_shift8(state, op_index, state.a)
    state.flag_z = False
