# tests/arch/sm83/test_opcodes.py
"""
gblite.arch.sm83.opcodesモジュールの単体テスト。
"""
import json

import pytest

from gblite.arch.sm83.opcodes import (
    OpcodeTable, OpcodeTableError, InstructionDescriptor, extended_opcode
)
from gblite.arch.sm83.instructions import is_executable, validate_table
from gblite.arch.sm83.cpu import Sm83Cpu
from gblite.transport.bus import Bus

# @intent:test_suite 命令テーブルの読み込み、検証、同梱テーブルの内容を検証します。

class TestOpcodeTableLoading:
    # @intent:test_case_records 最小限のレコードから記述子が作られることを検証します。
    def test_from_records(self):
        table = OpcodeTable.from_records([
            {"code": 0x00, "name": "NOP", "bytes": 1, "cycles": 4},
            {"code": "0x20", "name": "JR NZ,r8", "bytes": 2, "cycles": 8, "branch_cycles": 12},
            {"code": 0x7C, "prefix": "cb", "name": "BIT 7,H", "bytes": 2, "cycles": 8},
        ])
        assert len(table) == 3
        assert table.get(0x00) == InstructionDescriptor(0x00, "NOP", 1, 4, 4)
        assert table.get(0x20).branch_cycles == 12
        bit = table.get(0xCB7C)
        assert bit.prefix_cb
        assert bit.opcode_hex == "CB7C"
        assert 0xCB7C in table
        assert table.get(0x7C) is None

    # @intent:test_case_records 旧形式の "clocks" フィールドを受け付けることを検証します。
    def test_clocks_alias(self):
        table = OpcodeTable.from_records([{"code": 0, "name": "NOP", "bytes": 1, "clocks": 4}])
        assert table.get(0).cycles == 4

    # @intent:test_case_records "opcodes" キーを持つマッピングも受け付けることを検証します。
    def test_mapping_root(self):
        table = OpcodeTable.from_records({"opcodes": [{"code": 0, "name": "NOP", "bytes": 1, "cycles": 4}]})
        assert len(table) == 1

    # @intent:test_case_errors 不正なレコードがOpcodeTableErrorになることを検証します。
    @pytest.mark.parametrize("records", [
        [],
        "not a list",
        [{"code": 0, "name": "NOP", "bytes": 1}],
        [{"code": 0, "bytes": 1, "cycles": 4}],
        [{"code": 0x100, "name": "BAD", "bytes": 1, "cycles": 4}],
        [{"code": 0, "name": "BAD", "bytes": 4, "cycles": 4}],
        [{"code": 0, "prefix": "cb", "name": "BAD", "bytes": 1, "cycles": 8}],
        [{"code": 0, "name": "BAD", "bytes": 1, "cycles": 0}],
        [{"code": 0, "name": "BAD", "bytes": 1, "cycles": 8, "branch_cycles": 4}],
        [{"code": 0, "prefix": "ed", "name": "BAD", "bytes": 2, "cycles": 8}],
        [{"code": "zz", "name": "BAD", "bytes": 1, "cycles": 4}],
    ])
    def test_invalid_records(self, records):
        with pytest.raises(OpcodeTableError):
            OpcodeTable.from_records(records)

    def test_duplicate_opcode(self):
        with pytest.raises(OpcodeTableError, match="Duplicate"):
            OpcodeTable.from_records([
                {"code": 0, "name": "NOP", "bytes": 1, "cycles": 4},
                {"code": 0, "name": "NOP", "bytes": 1, "cycles": 4},
            ])

    # @intent:test_case_file 存在しないファイルや壊れたファイルはOpcodeTableErrorになることを検証します。
    def test_missing_file(self, tmp_path):
        with pytest.raises(OpcodeTableError, match="Cannot read"):
            OpcodeTable.load_from_file(str(tmp_path / "missing.yaml"))

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("- {code: 0x00, name: [unterminated\n")
        with pytest.raises(OpcodeTableError):
            OpcodeTable.load_from_file(str(path))

    # @intent:test_case_file JSON形式のテーブルも読み込めることを検証します。
    def test_json_file(self, tmp_path):
        path = tmp_path / "opcodes.json"
        path.write_text(json.dumps([{"code": 0, "name": "NOP", "bytes": 1, "clocks": 4}]))
        table = OpcodeTable.load_from_file(str(path))
        assert table.get(0).name == "NOP"

class TestDefaultTable:
    @pytest.fixture(scope="class")
    def table(self):
        return OpcodeTable.load_from_file()

    # @intent:test_case_default 同梱テーブルが全てのCB命令と未定義以外の基本命令を含むことを検証します。
    def test_coverage(self, table):
        undefined = {0xD3, 0xDB, 0xDD, 0xE3, 0xE4, 0xEB, 0xEC, 0xED, 0xF4, 0xFC, 0xFD}
        for opcode in range(0x100):
            assert (opcode in table) == (opcode not in undefined)
            assert extended_opcode(opcode) in table
        assert len(table) == 245 + 256

    # @intent:test_case_default 代表的な命令の長さとサイクル数を検証します。
    @pytest.mark.parametrize("opcode, name, length, cycles, branch_cycles", [
        (0x00, "NOP", 1, 4, 4),
        (0x01, "LD BC,d16", 3, 12, 12),
        (0x10, "STOP", 2, 4, 4),
        (0x20, "JR NZ,r8", 2, 8, 12),
        (0xC4, "CALL NZ,a16", 3, 12, 24),
        (0xCD, "CALL a16", 3, 24, 24),
        (0xC9, "RET", 1, 16, 16),
        (0xCB7C, "BIT 7,H", 2, 8, 8),
    ])
    def test_known_entries(self, table, opcode, name, length, cycles, branch_cycles):
        desc = table.get(opcode)
        assert (desc.name, desc.length, desc.cycles, desc.branch_cycles) == (name, length, cycles, branch_cycles)

    # @intent:test_case_default 0xCBプレフィックス自体以外の全ての記述子に実行関数があることを検証します。
    def test_every_descriptor_is_executable(self, table):
        missing = [d.opcode_hex for d in table if d.opcode != 0xCB and not is_executable(d.opcode)]
        assert missing == []

class TestTableValidation:
    # @intent:test_case_length 命令長が実行関数の読むオペランドと一致しないテーブルは、CPU構築時に拒否されることを検証します。
    @pytest.mark.parametrize("record", [
        {"code": 0x06, "name": "LD B,d8", "bytes": 1, "cycles": 8},
        {"code": 0xC3, "name": "JP a16", "bytes": 2, "cycles": 16},
        {"code": 0x00, "name": "NOP", "bytes": 2, "cycles": 4},
        {"code": 0xE2, "name": "LD (C),A", "bytes": 2, "cycles": 8},
    ])
    def test_length_mismatch(self, record):
        table = OpcodeTable.from_records([record])
        with pytest.raises(OpcodeTableError, match="does not match expected"):
            Sm83Cpu(Bus(), table)

    # @intent:test_case_length 実行関数のない記述子は検証の対象外であることを検証します。
    def test_descriptor_without_executor(self):
        table = OpcodeTable.from_records([{"code": 0xD3, "name": "???", "bytes": 3, "cycles": 4}])
        validate_table(table)

    def test_default_table_is_valid(self):
        validate_table(OpcodeTable.load_from_file())
