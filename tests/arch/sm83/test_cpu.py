# tests/arch/sm83/test_cpu.py
"""
gblite.arch.sm83.cpuモジュールの単体テスト。
Sm83Cpuのフェッチ、デコード、実行サイクルと実行状態の遷移を検証します。
"""
import logging

import pytest

from gblite.transport.bus import Bus, BusAccessType
from gblite.arch.sm83.cpu import Sm83Cpu
from gblite.arch.sm83.state import Sm83CpuState
from gblite.arch.sm83.opcodes import OpcodeTable
from gblite.core.state import RunState
from gblite.core.snapshot import Snapshot, Operation

# @intent:test_suite SM83 CPUの命令実行、スタック、分岐、フォールト、停止を検証します。

@pytest.fixture(scope="module")
def table():
    return OpcodeTable.load_from_file()

@pytest.fixture
def setup_cpu(table):
    bus = Bus()
    cpu = Sm83Cpu(bus, table)

    def load(program, address=0x0000):
        bus.load(bytes(program), address)

    return cpu, bus, load

class TestSm83CpuBasics:
    # @intent:test_case_init 初期状態が RUNNING, PC=0, IME有効であることを検証します。
    def test_init(self, setup_cpu):
        cpu, _, _ = setup_cpu
        state = cpu.get_state()
        assert isinstance(state, Sm83CpuState)
        assert state.pc == 0x0000
        assert state.ime is True
        assert cpu.run_state == RunState.RUNNING

    # @intent:test_case_reset リセットで初期状態に戻ることを検証します。
    def test_reset(self, setup_cpu):
        cpu, _, load = setup_cpu
        load([0x3E, 0x42])
        cpu.step()
        cpu.reset()
        assert cpu.get_state().a == 0
        assert cpu.get_state().pc == 0
        assert cpu.cycle_count == 0
        assert cpu.last_snapshot is None

    # @intent:test_case_step NOPがPCを1進め、スナップショットを返すことを検証します。
    def test_nop_step(self, setup_cpu):
        cpu, _, load = setup_cpu
        load([0x00])
        snapshot = cpu.step()
        assert isinstance(snapshot, Snapshot)
        assert snapshot.operation.mnemonic == "NOP"
        assert snapshot.operation.address == 0x0000
        assert cpu.get_state().pc == 0x0001
        assert cpu.last_cycles == 4
        assert cpu.last_snapshot is snapshot

    # @intent:test_case_snapshot スナップショットは後続の実行で変化しないことを検証します。
    def test_snapshot_state_is_copied(self, setup_cpu):
        cpu, _, load = setup_cpu
        load([0x3E, 0x01, 0x3E, 0x02])
        first = cpu.step()
        cpu.step()
        assert first.state.a == 0x01
        assert cpu.get_state().a == 0x02

    # @intent:test_case_snapshot バスアクティビティ（フェッチとオペランド読み出し）が記録されることを検証します。
    def test_snapshot_bus_activity(self, setup_cpu):
        cpu, _, load = setup_cpu
        load([0x3E, 0x42])
        snapshot = cpu.step()
        reads = [(a.address, a.data) for a in snapshot.bus_activity if a.access_type == BusAccessType.READ]
        assert reads == [(0x0000, 0x3E), (0x0001, 0x42)]

    # @intent:test_case_cycles 累計サイクル数が加算されることを検証します。
    def test_cycle_count_accumulates(self, setup_cpu):
        cpu, _, load = setup_cpu
        load([0x00, 0x3E, 0x01, 0x21, 0x00, 0xC0])
        for _ in range(3):
            cpu.step()
        assert cpu.cycle_count == 4 + 8 + 12
        assert cpu.last_snapshot.metadata.cycle_count == 24

    # @intent:test_case_trace 実行した命令がトレースロガーに出力されることを検証します。
    def test_trace_line(self, setup_cpu, caplog):
        cpu, _, load = setup_cpu
        load([0x3E, 0x42])
        caplog.set_level(logging.DEBUG, logger="gblite.trace")
        cpu.step()
        assert "0x0000: LD A,d8 - 8 cycles - operands: 0x42" in caplog.messages

    # @intent:test_case_trace トレースロガーが無効な場合はトレース行を組み立てないことを検証します。
    def test_trace_disabled_skips_formatting(self, setup_cpu, caplog, monkeypatch):
        cpu, _, load = setup_cpu
        load([0x3E, 0x42])
        caplog.set_level(logging.INFO, logger="gblite.trace")

        def fail(self):
            raise AssertionError("format_trace called while tracing is disabled")

        monkeypatch.setattr(Operation, "format_trace", fail)
        assert cpu.step() is not None
        assert cpu.get_state().a == 0x42

class TestSm83Loads:
    def test_ld_immediate(self, setup_cpu):
        cpu, _, load = setup_cpu
        load([0x3E, 0x42, 0x21, 0x34, 0x12, 0x31, 0xFE, 0xFF])
        for _ in range(3):
            cpu.step()
        state = cpu.get_state()
        assert state.a == 0x42
        assert state.hl == 0x1234
        assert state.sp == 0xFFFE
        assert state.pc == 0x0008

    # @intent:test_case_load LD (HL+),A と LD A,(HL-) がHLを増減させることを検証します。
    def test_ld_hl_increment_decrement(self, setup_cpu):
        cpu, bus, load = setup_cpu
        load([0x22, 0x3A])
        state = cpu.get_state()
        state.a = 0x99
        state.hl = 0xC000
        cpu.step()
        assert bus.peek(0xC000) == 0x99
        assert state.hl == 0xC001
        bus.write(0xC001, 0x55)
        cpu.step()
        assert state.a == 0x55
        assert state.hl == 0xC000

    def test_ld_r_r_and_hl(self, setup_cpu):
        cpu, bus, load = setup_cpu
        load([0x47, 0x70, 0x4E])  # LD B,A / LD (HL),B / LD C,(HL)
        state = cpu.get_state()
        state.a = 0x12
        state.hl = 0xC100
        for _ in range(3):
            cpu.step()
        assert state.b == 0x12
        assert bus.peek(0xC100) == 0x12
        assert state.c == 0x12

    # @intent:test_case_ldh LDH/LD (C) が 0xFF00 ページにアクセスすることを検証します。
    def test_ldh(self, setup_cpu):
        cpu, bus, load = setup_cpu
        load([0xE0, 0x40, 0xF2])
        state = cpu.get_state()
        state.a = 0x91
        cpu.step()
        assert bus.peek(0xFF40) == 0x91
        bus.write(0xFF44, 0x90)
        state.c = 0x44
        cpu.step()
        assert state.a == 0x90

    def test_ld_a16_sp(self, setup_cpu):
        cpu, bus, load = setup_cpu
        load([0x08, 0x00, 0xC0])
        cpu.get_state().sp = 0xBEEF
        cpu.step()
        assert bus.read16(0xC000) == 0xBEEF

    def test_ld_hl_sp_offset(self, setup_cpu):
        cpu, _, load = setup_cpu
        load([0xF8, 0xFE])  # LD HL,SP-2
        cpu.get_state().sp = 0xD000
        cpu.step()
        assert cpu.get_state().hl == 0xCFFE

class TestSm83Stack:
    # @intent:test_case_stack PUSH/POPの往復で値とSPが元に戻ることを検証します。
    def test_push_pop_round_trip(self, setup_cpu):
        cpu, bus, load = setup_cpu
        load([0xC5, 0xD1])  # PUSH BC / POP DE
        state = cpu.get_state()
        state.sp = 0xFFFE
        state.bc = 0x1234
        cpu.step()
        assert state.sp == 0xFFFC
        assert bus.peek(0xFFFC) == 0x34
        assert bus.peek(0xFFFD) == 0x12
        cpu.step()
        assert state.de == 0x1234
        assert state.sp == 0xFFFE

    # @intent:test_case_stack POP AF でFの下位ニブルが0になることを検証します。
    def test_pop_af_masks_flags(self, setup_cpu):
        cpu, bus, load = setup_cpu
        load([0xF1])
        state = cpu.get_state()
        state.sp = 0xC000
        bus.write16(0xC000, 0x12FF)
        cpu.step()
        assert state.a == 0x12
        assert state.f == 0xF0

    # @intent:test_case_call 0x0050のCALL 0x0100が0x0053を積み、RETで復帰することを検証します。
    def test_call_ret_round_trip(self, setup_cpu):
        cpu, bus, load = setup_cpu
        load([0xCD, 0x00, 0x01], 0x0050)
        load([0xC9], 0x0100)
        state = cpu.get_state()
        state.pc = 0x0050
        state.sp = 0xFFFE
        cpu.step()
        assert state.pc == 0x0100
        assert state.sp == 0xFFFC
        assert bus.read16(0xFFFC) == 0x0053
        assert cpu.last_cycles == 24
        cpu.step()
        assert state.pc == 0x0053
        assert state.sp == 0xFFFE

    # @intent:test_case_rst RST 38H が0x0038へコールすることを検証します。
    def test_rst(self, setup_cpu):
        cpu, bus, load = setup_cpu
        load([0xFF], 0x0200)
        state = cpu.get_state()
        state.pc = 0x0200
        state.sp = 0xD000
        cpu.step()
        assert state.pc == 0x0038
        assert bus.read16(0xCFFE) == 0x0201

    # @intent:test_case_reti RETIがIMEを有効にすることを検証します。
    def test_di_reti(self, setup_cpu):
        cpu, bus, load = setup_cpu
        load([0xF3, 0xD9])
        state = cpu.get_state()
        state.sp = 0xC000
        bus.write16(0xC000, 0x1234)
        cpu.step()
        assert state.ime is False
        cpu.step()
        assert state.ime is True
        assert state.pc == 0x1234

class TestSm83Branches:
    # @intent:test_case_jr 負のオフセットで後方へ分岐することを検証します。
    def test_jr_backwards(self, setup_cpu):
        cpu, _, load = setup_cpu
        load([0x18, 0xFE], 0x0010)
        cpu.get_state().pc = 0x0010
        assert cpu.process() is True
        assert cpu.get_state().pc == 0x0010

    # @intent:test_case_fault 16bit空間を超える相対ジャンプはFAULTEDになり、PCは進んだ値のままであることを検証します。
    def test_jr_out_of_bounds_faults(self, setup_cpu, caplog):
        cpu, _, load = setup_cpu
        load([0x18, 0x20], 0xFFEE)
        cpu.get_state().pc = 0xFFEE
        with caplog.at_level(logging.ERROR):
            assert cpu.process() is False
        assert cpu.run_state == RunState.FAULTED
        assert cpu.get_state().pc == 0xFFF0
        assert any("relative jump" in m for m in caplog.messages)
        assert [r.name for r in caplog.records if r.levelno == logging.ERROR] == ["gblite.core.cpu"]

    # @intent:test_case_conditional 条件成立時は branch_cycles、不成立時は cycles を消費することを検証します。
    def test_jr_cc_cycles(self, setup_cpu):
        cpu, _, load = setup_cpu
        load([0x20, 0x02, 0x00, 0x00, 0x20, 0x10])
        state = cpu.get_state()
        cpu.step()  # Z=0 なので分岐
        assert state.pc == 0x0004
        assert cpu.last_cycles == 12
        state.flag_z = True
        cpu.step()  # Z=1 なので分岐しない
        assert state.pc == 0x0006
        assert cpu.last_cycles == 8

    def test_jp_and_jp_hl(self, setup_cpu):
        cpu, _, load = setup_cpu
        load([0xC3, 0x00, 0x20])
        load([0xE9], 0x2000)
        cpu.step()
        assert cpu.get_state().pc == 0x2000
        cpu.get_state().hl = 0x3000
        cpu.step()
        assert cpu.get_state().pc == 0x3000

    def test_call_cc_not_taken(self, setup_cpu):
        cpu, _, load = setup_cpu
        load([0xCC, 0x00, 0x01])  # CALL Z,a16
        state = cpu.get_state()
        state.sp = 0xFFFE
        cpu.step()
        assert state.pc == 0x0003
        assert state.sp == 0xFFFE
        assert cpu.last_cycles == 12

    def test_ret_cc_taken(self, setup_cpu):
        cpu, bus, load = setup_cpu
        load([0xC0])  # RET NZ
        state = cpu.get_state()
        state.sp = 0xC000
        bus.write16(0xC000, 0x4000)
        cpu.step()
        assert state.pc == 0x4000
        assert cpu.last_cycles == 20

class TestSm83Arithmetic:
    def test_add_a_b(self, setup_cpu):
        cpu, _, load = setup_cpu
        load([0x80])
        state = cpu.get_state()
        state.a, state.b = 0xFF, 0x01
        cpu.step()
        assert state.a == 0x00
        assert state.flag_z and state.flag_h and state.flag_c and not state.flag_n

    def test_inc_hl_indirect(self, setup_cpu):
        cpu, bus, load = setup_cpu
        load([0x34])
        cpu.get_state().hl = 0xC000
        bus.write(0xC000, 0x0F)
        cpu.step()
        assert bus.peek(0xC000) == 0x10
        assert cpu.get_state().flag_h
        assert cpu.last_cycles == 12

    def test_inc_dec16_wraps(self, setup_cpu):
        cpu, _, load = setup_cpu
        load([0x03, 0x1B])  # INC BC / DEC DE
        state = cpu.get_state()
        state.bc = 0xFFFF
        cpu.step()
        cpu.step()
        assert state.bc == 0x0000
        assert state.de == 0xFFFF
        assert state.f == 0

    def test_cp_immediate(self, setup_cpu):
        cpu, _, load = setup_cpu
        load([0xFE, 0x10])
        state = cpu.get_state()
        state.a = 0x10
        cpu.step()
        assert state.a == 0x10
        assert state.flag_z and state.flag_n

    def test_rlca_clears_zero(self, setup_cpu):
        cpu, _, load = setup_cpu
        load([0x07])
        state = cpu.get_state()
        state.flag_z = True
        state.a = 0x80
        cpu.step()
        assert state.a == 0x01
        assert state.flag_c
        assert not state.flag_z

class TestSm83RunStates:
    # @intent:test_case_undefined 未定義命令でFAULTEDになり、その後のprocess()は状態を変えないことを検証します。
    def test_undefined_opcode_faults(self, setup_cpu, caplog):
        cpu, _, load = setup_cpu
        load([0xD3, 0x00])
        with caplog.at_level(logging.ERROR):
            assert cpu.process() is False
        assert cpu.run_state == RunState.FAULTED
        assert cpu.get_state().pc == 0x0000
        assert any("undefined instruction" in m for m in caplog.messages)
        assert [r.name for r in caplog.records if r.levelno == logging.ERROR] == ["gblite.core.cpu"]

        before = Sm83CpuState(**vars(cpu.get_state()))
        assert cpu.process() is False
        assert cpu.step() is None
        assert vars(cpu.get_state()) == vars(before)
        assert cpu.last_cycles == 0

    # @intent:test_case_undefined テーブルに記述子がない命令もデコードフォールトになることを検証します。
    def test_missing_descriptor_faults(self):
        table = OpcodeTable.from_records([{"code": 0x76, "name": "HALT", "bytes": 1, "cycles": 4}])
        cpu = Sm83Cpu(Bus(), table)
        assert cpu.process() is False
        assert cpu.run_state == RunState.FAULTED
        assert cpu.get_state().pc == 0x0000

    # @intent:test_case_halt HALTでHALTEDになることを検証します。
    def test_halt(self, setup_cpu, caplog):
        cpu, _, load = setup_cpu
        load([0x76])
        with caplog.at_level(logging.INFO):
            assert cpu.process() is False
        assert cpu.run_state == RunState.HALTED
        assert cpu.get_state().pc == 0x0001
        assert "Encountered HALT instruction, exiting!" in caplog.messages

    # @intent:test_case_stop STOPはHALTと区別されたメッセージでHALTEDになることを検証します。
    def test_stop(self, setup_cpu, caplog):
        cpu, _, load = setup_cpu
        load([0x10, 0x00])
        with caplog.at_level(logging.INFO):
            assert cpu.process() is False
        assert cpu.run_state == RunState.HALTED
        assert cpu.get_state().pc == 0x0002
        assert "Encountered STOP instruction, exiting!" in caplog.messages

class TestSm83Introspection:
    def test_register_and_flag_maps(self, setup_cpu):
        cpu, _, _ = setup_cpu
        state = cpu.get_state()
        state.hl = 0xABCD
        state.flag_c = True
        registers = cpu.get_register_map()
        assert registers["HL"] == 0xABCD
        assert registers["H"] == 0xAB
        assert cpu.get_flag_state() == {"Z": False, "N": False, "H": False, "C": True}

    # @intent:test_case_disasm 逆アセンブルがCB命令と未定義バイトを扱えることを検証します。
    def test_disassemble(self, setup_cpu):
        cpu, bus, load = setup_cpu
        load([0x3E, 0x42, 0xCB, 0x7C, 0xD3, 0x00])
        lines = cpu.disassemble(0x0000, 6)
        assert lines == [
            (0x0000, "3E 42", "LD A,d8 ; $42"),
            (0x0002, "CB 7C", "BIT 7,H"),
            (0x0004, "D3", "DB $D3"),
            (0x0005, "00", "NOP"),
        ]
        assert bus.get_and_clear_activity_log() == []
