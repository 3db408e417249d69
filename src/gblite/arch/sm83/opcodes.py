"""
SM83 命令メタデータ（命令記述子）テーブル。

外部データファイル（YAML、JSON互換）から命令ごとの名前・バイト長・サイクル数を読み込み、
オペコードをキーとする不変の辞書として保持します。
0xCB プレフィックス命令は 0xCB00 | n をキーとする別の名前空間に格納されます。
"""
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, Optional

import yaml

logger = logging.getLogger(__name__)

CB_PREFIX = 0xCB

# @intent:constant パッケージに同梱される既定の命令テーブル。
DEFAULT_TABLE_PATH = os.path.join(os.path.dirname(__file__), "data", "opcodes.yaml")

# @intent:responsibility 命令テーブルの欠落・不正を表す例外です。起動時の致命的エラーとして扱われます。
class OpcodeTableError(ValueError):
    pass

# @intent:utility_function CBプレフィックス命令の拡張オペコードを生成します。
def extended_opcode(cb_opcode: int) -> int:
    return (CB_PREFIX << 8) | (cb_opcode & 0xFF)

# @intent:responsibility 1命令分の不変なメタデータを保持します。
@dataclass(frozen=True)
class InstructionDescriptor:
    """
    オペコード1つ分の命令記述子。
    length はCB命令の場合プレフィックスバイトを含みます。
    cycles はクロック(T-state)単位の基本コスト、branch_cycles は条件分岐成立時のコストです。
    """
    opcode: int
    name: str
    length: int
    cycles: int
    branch_cycles: int
    prefix_cb: bool = False

    @property
    def opcode_hex(self) -> str:
        return f"{self.opcode:04X}" if self.prefix_cb else f"{self.opcode:02X}"

# @intent:responsibility オペコードから命令記述子を引くための読み取り専用テーブルです。
class OpcodeTable:
    """
    命令記述子の辞書を保持します。構築後は変更されません。
    """
    def __init__(self, descriptors: Iterable[InstructionDescriptor]):
        self._descriptors: Dict[int, InstructionDescriptor] = {}
        for desc in descriptors:
            if desc.opcode in self._descriptors:
                raise OpcodeTableError(f"Duplicate opcode entry: {desc.opcode_hex}")
            self._descriptors[desc.opcode] = desc

    # @intent:responsibility YAML/JSONファイルからテーブルを読み込みます。
    # @intent:post-condition ファイルが存在しない、または形式が不正な場合はOpcodeTableErrorを送出します。
    @classmethod
    def load_from_file(cls, path: str = DEFAULT_TABLE_PATH) -> "OpcodeTable":
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise OpcodeTableError(f"Cannot read opcode table '{path}': {e}") from e
        except yaml.YAMLError as e:
            raise OpcodeTableError(f"Malformed opcode table '{path}': {e}") from e

        table = cls.from_records(data)
        logger.info("Loaded %d opcode descriptors from %s", len(table), path)
        return table

    # @intent:responsibility パース済みのレコード列からテーブルを構築します。
    @classmethod
    def from_records(cls, records: Any) -> "OpcodeTable":
        if isinstance(records, dict):
            records = records.get("opcodes")
        if not isinstance(records, list) or not records:
            raise OpcodeTableError("Opcode table must be a non-empty list of records.")
        return cls(_parse_record(index, record) for index, record in enumerate(records))

    def get(self, opcode: int) -> Optional[InstructionDescriptor]:
        return self._descriptors.get(opcode)

    def __contains__(self, opcode: int) -> bool:
        return opcode in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)

    def __iter__(self) -> Iterator[InstructionDescriptor]:
        return iter(self._descriptors.values())

def _parse_int(value: Any, field_name: str, index: int) -> int:
    if isinstance(value, bool):
        raise OpcodeTableError(f"Record {index}: field '{field_name}' must be an integer.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value, 0)
        except ValueError:
            pass
    raise OpcodeTableError(f"Record {index}: field '{field_name}' must be an integer, got {value!r}.")

# @intent:utility_function 1レコードを検証して InstructionDescriptor に変換します。
# @intent:rationale サイクル数のフィールド名は "cycles" と、旧形式の "clocks" の両方を受け付けます。
def _parse_record(index: int, record: Any) -> InstructionDescriptor:
    if not isinstance(record, dict):
        raise OpcodeTableError(f"Record {index} is not a mapping: {record!r}")
    for key in ("code", "name", "bytes"):
        if key not in record:
            raise OpcodeTableError(f"Record {index} is missing required field '{key}'.")
    if "cycles" not in record and "clocks" not in record:
        raise OpcodeTableError(f"Record {index} is missing required field 'cycles'.")

    code = _parse_int(record["code"], "code", index)
    length = _parse_int(record["bytes"], "bytes", index)
    cycles = _parse_int(record.get("cycles", record.get("clocks")), "cycles", index)
    branch_cycles = _parse_int(record.get("branch_cycles", cycles), "branch_cycles", index)
    prefix = str(record.get("prefix", "")).lower()
    prefix_cb = prefix == "cb"

    if prefix not in ("", "cb"):
        raise OpcodeTableError(f"Record {index}: unknown prefix {record['prefix']!r}.")
    if not 0 <= code <= 0xFF:
        raise OpcodeTableError(f"Record {index}: opcode {code:#x} is not a byte.")
    if not 1 <= length <= 3 or (prefix_cb and length != 2):
        raise OpcodeTableError(f"Record {index}: invalid instruction length {length}.")
    if cycles <= 0 or branch_cycles < cycles:
        raise OpcodeTableError(f"Record {index}: invalid cycle count {cycles}/{branch_cycles}.")

    return InstructionDescriptor(
        opcode=extended_opcode(code) if prefix_cb else code,
        name=str(record["name"]),
        length=length,
        cycles=cycles,
        branch_cycles=branch_cycles,
        prefix_cb=prefix_cb,
    )
