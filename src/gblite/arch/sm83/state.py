"""
SM83 (Game Boy CPU) 固有の状態定義。

このモジュールは、SM83のレジスタ、フラグ、およびレジスタペアの別名アクセスを定義します。
16bitペアは独立した記憶領域を持たず、常に上位/下位の8bitレジスタから合成されます。
"""
from dataclasses import dataclass
from enum import Enum
from typing import Union

from gblite.core.state import CpuState

# SM83フラグビットマスク（下位ニブルは常に0）
# @intent:constant Fレジスタ内の各フラグビットの位置を定義します。
Z_FLAG = 0b10000000  # Zero
N_FLAG = 0b01000000  # Subtract
H_FLAG = 0b00100000  # Half Carry
C_FLAG = 0b00010000  # Carry
FLAG_MASK = 0xF0

# @intent:responsibility 8bitレジスタの名前を定義します。
class Reg8(Enum):
    A = "a"
    B = "b"
    C = "c"
    D = "d"
    E = "e"
    H = "h"
    L = "l"

# @intent:responsibility 16bitレジスタ（ペアおよびSP/PC）の名前を定義します。
class Reg16(Enum):
    AF = "af"
    BC = "bc"
    DE = "de"
    HL = "hl"
    SP = "sp"
    PC = "pc"

Register = Union[Reg8, Reg16]

# @intent:responsibility SM83 CPUの全てのレジスタとフラグの状態を保持します。
@dataclass
class Sm83CpuState(CpuState):
    """
    SM83 CPUのレジスタ状態を保持するデータクラス。
    CpuStateを拡張し、Game Boy固有のレジスタを含みます。
    """
    a: int = 0x00
    b: int = 0x00
    c: int = 0x00
    d: int = 0x00
    e: int = 0x00
    h: int = 0x00
    l: int = 0x00
    f: int = 0x00  # Flag register (上位ニブルのみ)

    ime: bool = True  # Interrupt Master Enable ラッチ

    def __post_init__(self) -> None:
        self.f &= FLAG_MASK

    # @intent:accessor Fレジスタの各フラグビットにアクセスするためのプロパティを提供します。
    # @intent:rationale フラグを直接ビット操作する代わりに、分かりやすいプロパティとして提供することで、コードの可読性と保守性を高めます。

    @property
    def flag_z(self) -> bool:
        return (self.f & Z_FLAG) != 0

    @flag_z.setter
    def flag_z(self, value: bool) -> None:
        if value:
            self.f |= Z_FLAG
        else:
            self.f &= ~Z_FLAG

    @property
    def flag_n(self) -> bool:
        return (self.f & N_FLAG) != 0

    @flag_n.setter
    def flag_n(self, value: bool) -> None:
        if value:
            self.f |= N_FLAG
        else:
            self.f &= ~N_FLAG

    @property
    def flag_h(self) -> bool:
        return (self.f & H_FLAG) != 0

    @flag_h.setter
    def flag_h(self, value: bool) -> None:
        if value:
            self.f |= H_FLAG
        else:
            self.f &= ~H_FLAG

    @property
    def flag_c(self) -> bool:
        return (self.f & C_FLAG) != 0

    @flag_c.setter
    def flag_c(self, value: bool) -> None:
        if value:
            self.f |= C_FLAG
        else:
            self.f &= ~C_FLAG

    # 16-bit register pairs
    # 書き込み時は上位バイトがペアの1つ目、下位バイトが2つ目のレジスタに入ります。
    @property
    def af(self) -> int:
        return (self.a << 8) | self.f

    @af.setter
    def af(self, value: int) -> None:
        self.a = (value >> 8) & 0xFF
        self.f = value & FLAG_MASK

    @property
    def bc(self) -> int:
        return (self.b << 8) | self.c

    @bc.setter
    def bc(self, value: int) -> None:
        self.b = (value >> 8) & 0xFF
        self.c = value & 0xFF

    @property
    def de(self) -> int:
        return (self.d << 8) | self.e

    @de.setter
    def de(self, value: int) -> None:
        self.d = (value >> 8) & 0xFF
        self.e = value & 0xFF

    @property
    def hl(self) -> int:
        return (self.h << 8) | self.l

    @hl.setter
    def hl(self, value: int) -> None:
        self.h = (value >> 8) & 0xFF
        self.l = value & 0xFF

    # @intent:responsibility 列挙型で指定されたレジスタの値を返します。
    def get(self, reg: Register) -> int:
        return getattr(self, reg.value)

    # @intent:responsibility 列挙型で指定されたレジスタに値を設定します。幅を超えるビットは切り捨てます。
    def set(self, reg: Register, value: int) -> None:
        setattr(self, reg.value, value & _width_mask(reg))

    # @intent:responsibility 同じ幅のレジスタ間で値をコピーします。
    # @intent:pre-condition dst と src は同じ幅（両方Reg8、または両方Reg16）である必要があります。
    def copy(self, dst: Register, src: Register) -> None:
        if type(dst) is not type(src):
            raise TypeError(f"Cannot copy between registers of different widths: {dst} <- {src}")
        self.set(dst, self.get(src))

    # @intent:responsibility レジスタに加算します。8bitは0-255、16bitは0-65535で折り返します。
    def add(self, reg: Register, delta: int) -> None:
        self.set(reg, self.get(reg) + delta)

    # @intent:responsibility レジスタから減算します。折り返しはaddと同じです。
    def sub(self, reg: Register, delta: int) -> None:
        self.set(reg, self.get(reg) - delta)

def _width_mask(reg: Register) -> int:
    return 0xFF if isinstance(reg, Reg8) else 0xFFFF
