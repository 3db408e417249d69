"""
SM83 ALU (算術論理演算ユニット) およびフラグ操作ユーティリティ。

演算結果に基づいた正確なフラグ（Z, N, H, C）の計算と更新を担当します。
全ての関数はアキュムレータ（または指定レジスタ）とFレジスタ以外に副作用を持ちません。
"""
from enum import Enum

from gblite.arch.sm83.state import Sm83CpuState

# @intent:responsibility アキュムレータとオペランドに対する8bit演算の種類を定義します。
# @intent:rationale 値はオペコード 0x80-0xBF のビット5-3 (演算選択フィールド) に一致させています。
class AluOp(Enum):
    ADD = 0
    ADC = 1
    SUB = 2
    SBC = 3
    AND = 4
    XOR = 5
    OR = 6
    CP = 7

def _set_flags(state: Sm83CpuState, z: bool, n: bool, h: bool, c: bool) -> None:
    state.flag_z = z
    state.flag_n = n
    state.flag_h = h
    state.flag_c = c

# @intent:responsibility 8ビット加算の結果に基づいて全フラグを更新します。
def update_flags_add8(state: Sm83CpuState, val1: int, val2: int, result: int, carry_in: int = 0) -> None:
    """ADD/ADC命令のフラグを更新します。"""
    _set_flags(
        state,
        z=(result & 0xFF) == 0,
        n=False,
        h=((val1 & 0x0F) + (val2 & 0x0F) + carry_in) > 0x0F,
        c=result > 0xFF,
    )

# @intent:responsibility 8ビット減算の結果に基づいて全フラグを更新します。
def update_flags_sub8(state: Sm83CpuState, val1: int, val2: int, result: int, borrow_in: int = 0) -> None:
    """SUB/SBC/CP命令のフラグを更新します。"""
    _set_flags(
        state,
        z=(result & 0xFF) == 0,
        n=True,
        h=((val1 & 0x0F) - (val2 & 0x0F) - borrow_in) < 0,
        c=result < 0,
    )

# @intent:responsibility 8ビット論理演算の結果に基づいてフラグを更新します。
def update_flags_logic8(state: Sm83CpuState, result: int) -> None:
    """AND/OR/XOR/CPL命令のフラグを更新します。桁上がりは発生しないのでH, Cは常にクリアされます。"""
    _set_flags(state, z=(result & 0xFF) == 0, n=False, h=False, c=False)

# @intent:responsibility アキュムレータに対して8bit演算を行い、結果をAに書き込みます。
# @intent:pre-condition operand は8bit値である必要があります。
def alu8(state: Sm83CpuState, op: AluOp, operand: int) -> int:
    """
    A と operand に op を適用し、フラグを更新します。
    CP は A を変更せずフラグのみ更新します。戻り値は8bitに切り詰めた演算結果です。
    """
    a = state.a
    # キャリー入力はFを書き換える前に読み取る
    carry = 1 if state.flag_c else 0

    if op == AluOp.ADD:
        result = a + operand
        update_flags_add8(state, a, operand, result)
    elif op == AluOp.ADC:
        result = a + operand + carry
        update_flags_add8(state, a, operand, result, carry_in=carry)
    elif op in (AluOp.SUB, AluOp.CP):
        result = a - operand
        update_flags_sub8(state, a, operand, result)
    elif op == AluOp.SBC:
        result = a - operand - carry
        update_flags_sub8(state, a, operand, result, borrow_in=carry)
    elif op == AluOp.AND:
        result = a & operand
        update_flags_logic8(state, result)
    elif op == AluOp.XOR:
        result = a ^ operand
        update_flags_logic8(state, result)
    else: # OR
        result = a | operand
        update_flags_logic8(state, result)

    result &= 0xFF
    if op != AluOp.CP:
        state.a = result
    return result

# @intent:responsibility CPL: アキュムレータの1の補数を取ります。フラグは他の論理演算と同じ規則で更新します。
def complement(state: Sm83CpuState) -> None:
    state.a = (~state.a) & 0xFF
    update_flags_logic8(state, state.a)

# @intent:responsibility 8bit INC/DEC の結果を返し、フラグを更新します（Cフラグは変化しません）。
def inc_dec8(state: Sm83CpuState, value: int, is_inc: bool) -> int:
    """INC/DEC命令の演算とフラグ更新を行います。"""
    if is_inc:
        result = (value + 1) & 0xFF
        state.flag_h = (value & 0x0F) == 0x0F
    else:
        result = (value - 1) & 0xFF
        state.flag_h = (value & 0x0F) == 0x00
    state.flag_z = result == 0
    state.flag_n = not is_inc
    return result

# @intent:responsibility ADD HL,rr の結果を返し、フラグ（N, H, C）を更新します。
# @intent:rationale Zフラグは影響を受けないことに注意してください。
def add16(state: Sm83CpuState, val1: int, val2: int) -> int:
    result = val1 + val2
    state.flag_n = False
    # Half Carry: Bit 11から12へのキャリー
    state.flag_h = ((val1 & 0x0FFF) + (val2 & 0x0FFF)) > 0x0FFF
    state.flag_c = result > 0xFFFF
    return result & 0xFFFF

# @intent:responsibility SP + 符号付き8bitオフセットを計算します (ADD SP,e / LD HL,SP+e)。
def add_sp_offset(state: Sm83CpuState, offset: int) -> int:
    """
    offset は符号付きに変換済みの値 (-128..127) を受け取ります。
    H/C は下位バイトの符号なし加算から求め、Z/N はクリアされます。
    """
    sp = state.sp
    unsigned = offset & 0xFF
    _set_flags(
        state,
        z=False,
        n=False,
        h=((sp & 0x0F) + (unsigned & 0x0F)) > 0x0F,
        c=((sp & 0xFF) + unsigned) > 0xFF,
    )
    return (sp + offset) & 0xFFFF

# @intent:responsibility DAA: 直前の加減算結果をBCDに補正します。
def decimal_adjust(state: Sm83CpuState) -> None:
    a = state.a
    adjust = 0
    carry = state.flag_c
    if state.flag_n:
        if state.flag_h:
            adjust |= 0x06
        if carry:
            adjust |= 0x60
        a = (a - adjust) & 0xFF
    else:
        if state.flag_h or (a & 0x0F) > 0x09:
            adjust |= 0x06
        if carry or a > 0x99:
            adjust |= 0x60
            carry = True
        a = (a + adjust) & 0xFF
    state.a = a
    state.flag_z = a == 0
    state.flag_h = False
    state.flag_c = carry

# @intent:responsibility SCF / CCF: キャリーフラグをセット・反転します。
def set_carry(state: Sm83CpuState, complement_carry: bool = False) -> None:
    state.flag_c = (not state.flag_c) if complement_carry else True
    state.flag_n = False
    state.flag_h = False

# @intent:responsibility 8bit値に対するローテート/シフト/SWAPを行い、結果を返します。
# @intent:rationale Zフラグは結果から計算します。RLCA等のアキュムレータ版は呼び出し側でZをクリアします。
def rotate_shift8(state: Sm83CpuState, op_index: int, value: int) -> int:
    carry_in = 1 if state.flag_c else 0
    carry_out = False

    if op_index == 0: # RLC
        carry_out = (value & 0x80) != 0
        result = ((value << 1) | (value >> 7)) & 0xFF
    elif op_index == 1: # RRC
        carry_out = (value & 0x01) != 0
        result = ((value >> 1) | (value << 7)) & 0xFF
    elif op_index == 2: # RL
        carry_out = (value & 0x80) != 0
        result = ((value << 1) | carry_in) & 0xFF
    elif op_index == 3: # RR
        carry_out = (value & 0x01) != 0
        result = (value >> 1) | (carry_in << 7)
    elif op_index == 4: # SLA
        carry_out = (value & 0x80) != 0
        result = (value << 1) & 0xFF
    elif op_index == 5: # SRA (符号ビット保持)
        carry_out = (value & 0x01) != 0
        result = (value >> 1) | (value & 0x80)
    elif op_index == 6: # SWAP
        result = ((value << 4) | (value >> 4)) & 0xFF
    else: # SRL
        carry_out = (value & 0x01) != 0
        result = value >> 1

    _set_flags(state, z=result == 0, n=False, h=False, c=carry_out)
    return result

# @intent:responsibility BIT b,r: 指定ビットが0ならZをセットします。Cは保持します。
def check_bit(state: Sm83CpuState, bit: int, value: int) -> None:
    state.flag_z = (value & (1 << bit)) == 0
    state.flag_n = False
    state.flag_h = True
