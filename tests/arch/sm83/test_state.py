# tests/arch/sm83/test_state.py
"""
gblite.arch.sm83.stateモジュールの単体テスト。
"""
import pytest

from gblite.arch.sm83.state import Sm83CpuState, Reg8, Reg16
from gblite.core.state import RunState

# @intent:test_suite SM83のレジスタ、フラグ、レジスタペアの不変条件を検証します。

class TestSm83CpuState:
    # @intent:test_case_init 既定値を検証します。
    def test_defaults(self):
        state = Sm83CpuState()
        assert state.pc == 0x0000
        assert state.sp == 0x0000
        assert state.a == 0 and state.f == 0
        assert state.ime is True
        assert state.run_state == RunState.RUNNING

    # @intent:test_case_init Fの下位ニブルは生成時に0にされることを検証します。
    def test_f_masked_on_init(self):
        assert Sm83CpuState(f=0xFF).f == 0xF0

    # @intent:test_case_pairs 全てのペアについて set/get が往復し、上位/下位に分解されることを検証します。
    @pytest.mark.parametrize("pair, high, low", [
        ("bc", "b", "c"),
        ("de", "d", "e"),
        ("hl", "h", "l"),
    ])
    def test_pair_round_trip(self, pair, high, low):
        state = Sm83CpuState()
        setattr(state, pair, 0xBEEF)
        assert getattr(state, pair) == 0xBEEF
        assert getattr(state, high) == 0xBE
        assert getattr(state, low) == 0xEF

    # @intent:test_case_pairs AFへの書き込みはFの下位ニブルを0にすることを検証します。
    def test_af_masks_low_nibble(self):
        state = Sm83CpuState()
        state.af = 0x12FF
        assert state.a == 0x12
        assert state.f == 0xF0
        assert state.af == 0x12F0

    # @intent:test_case_flags 各フラグのビット位置を検証します。
    def test_flag_bits(self):
        state = Sm83CpuState()
        state.flag_z = True
        assert state.f == 0x80
        state.flag_n = True
        assert state.f == 0xC0
        state.flag_h = True
        assert state.f == 0xE0
        state.flag_c = True
        assert state.f == 0xF0
        state.flag_z = False
        assert state.f == 0x70
        assert not state.flag_z and state.flag_n and state.flag_h and state.flag_c

    # @intent:test_case_accessors 列挙型アクセサが幅に応じて切り捨てることを検証します。
    def test_get_set_masks_width(self):
        state = Sm83CpuState()
        state.set(Reg8.B, 0x1FF)
        assert state.get(Reg8.B) == 0xFF
        state.set(Reg16.SP, 0x12345)
        assert state.get(Reg16.SP) == 0x2345

    # @intent:test_case_accessors 加減算が8bit/16bitで折り返すことを検証します。
    def test_add_sub_wrap(self):
        state = Sm83CpuState(a=0xFF, sp=0x0000)
        state.add(Reg8.A, 1)
        assert state.a == 0x00
        state.sub(Reg16.SP, 2)
        assert state.sp == 0xFFFE
        state.hl = 0xFFFF
        state.add(Reg16.HL, 1)
        assert state.hl == 0x0000

    # @intent:test_case_accessors 同じ幅のレジスタ間でコピーでき、幅が異なる場合はTypeErrorになることを検証します。
    def test_copy(self):
        state = Sm83CpuState(b=0x42)
        state.copy(Reg8.A, Reg8.B)
        assert state.a == 0x42
        state.hl = 0xC000
        state.copy(Reg16.SP, Reg16.HL)
        assert state.sp == 0xC000
        with pytest.raises(TypeError):
            state.copy(Reg8.A, Reg16.HL)
