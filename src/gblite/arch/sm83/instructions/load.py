"""
SM83 データ転送命令の実装。
"""
from gblite.arch.sm83.state import Sm83CpuState, Reg16
from gblite.arch.sm83.alu import add_sp_offset
from gblite.core.snapshot import Operation
from gblite.transport.bus import Bus, IO_PAGE_BASE
from .base import (
    REGISTER_CODES, RP_CODES, RP2_CODES,
    get_register_value, set_register_value, imm8, imm16, signed8, push16, pop16
)

# @intent:responsibility LD rr,d16 (BC/DE/HL/SP) を実行します。
def execute_ld_rr_d16(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    state.set(RP_CODES[(operation.opcode >> 4) & 0b11], imm16(operation))

# @intent:utility_function 0x02/0x0A 系の間接アドレスを求め、HL+/HL- の後処理を行います。
def _indirect_address(state: Sm83CpuState, opcode: int) -> int:
    selector = (opcode >> 4) & 0b11
    if selector == 0:
        return state.bc
    if selector == 1:
        return state.de
    address = state.hl
    if selector == 2:
        state.add(Reg16.HL, 1)  # (HL+)
    else:
        state.sub(Reg16.HL, 1)  # (HL-)
    return address

# @intent:responsibility LD (BC),A / LD (DE),A / LD (HL+),A / LD (HL-),A を実行します。
def execute_ld_indirect_a(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    address = _indirect_address(state, operation.opcode)
    bus.write(address, state.a)

# @intent:responsibility LD A,(BC) / LD A,(DE) / LD A,(HL+) / LD A,(HL-) を実行します。
def execute_ld_a_indirect(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    address = _indirect_address(state, operation.opcode)
    state.a = bus.read(address)

# @intent:responsibility LD r,d8 および LD (HL),d8 を実行します。
def execute_ld_r_d8(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    set_register_value(state, bus, (operation.opcode >> 3) & 0b111, imm8(operation))

# @intent:responsibility LD r,r' を実行します。レジスタ間はcopy、(HL)を含む場合はメモリ経由で転送します。
def execute_ld_r_r(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    dst_code = (operation.opcode >> 3) & 0b111
    src_code = operation.opcode & 0b111
    dst, src = REGISTER_CODES[dst_code], REGISTER_CODES[src_code]
    if dst is not None and src is not None:
        state.copy(dst, src)
    else:
        set_register_value(state, bus, dst_code, get_register_value(state, bus, src_code))

# @intent:responsibility LD (a16),SP を実行します。
def execute_ld_a16_sp(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    bus.write16(imm16(operation), state.sp)

# @intent:responsibility LD (a16),A を実行します。
def execute_ld_a16_a(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    bus.write(imm16(operation), state.a)

# @intent:responsibility LD A,(a16) を実行します。
def execute_ld_a_a16(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    state.a = bus.read(imm16(operation))

# @intent:responsibility 高速I/Oページへの書き込み LDH (a8),A / LD (C),A を実行します。
# @intent:rationale アドレスは 0xFF00 + オフセット。オフセットは即値 (0xE0) またはCレジスタ (0xE2)。
def execute_ldh_store(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    offset = imm8(operation) if operation.opcode == 0xE0 else state.c
    bus.write(IO_PAGE_BASE + offset, state.a)

# @intent:responsibility 高速I/Oページからの読み込み LDH A,(a8) / LD A,(C) を実行します。
def execute_ldh_load(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    offset = imm8(operation) if operation.opcode == 0xF0 else state.c
    state.a = bus.read(IO_PAGE_BASE + offset)

# @intent:responsibility LD HL,SP+r8 を実行します。
def execute_ld_hl_sp_e(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    state.hl = add_sp_offset(state, signed8(imm8(operation)))

# @intent:responsibility LD SP,HL を実行します。
def execute_ld_sp_hl(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    state.copy(Reg16.SP, Reg16.HL)

# @intent:responsibility PUSH qq を実行します。
def execute_push(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    push16(state, bus, state.get(RP2_CODES[(operation.opcode >> 4) & 0b11]))

# @intent:responsibility POP qq を実行します。POP AF ではFの下位ニブルは0に保たれます。
def execute_pop(state: Sm83CpuState, bus: Bus, operation: Operation) -> None:
    state.set(RP2_CODES[(operation.opcode >> 4) & 0b11], pop16(state, bus))
