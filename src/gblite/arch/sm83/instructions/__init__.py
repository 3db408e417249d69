"""
SM83命令セット実装パッケージ。
"""
from typing import Optional

from gblite.transport.bus import Bus
from gblite.core.snapshot import Operation
from gblite.arch.sm83.state import Sm83CpuState
from gblite.arch.sm83.opcodes import InstructionDescriptor, OpcodeTable, OpcodeTableError
from .maps import EXECUTE_MAP, LENGTH_MAP

# @intent:responsibility 命令記述子とメモリ上のオペランドからOperationを組み立てます。
# @intent:pre-condition `pc`はデコードする命令の先頭アドレス（CB命令ならプレフィックスの位置）を指している必要があります。
def decode_operation(descriptor: InstructionDescriptor, bus: Bus, pc: int, peek: bool = False) -> Operation:
    """
    オペランドバイトを読み取り、Operationを返します。
    CB命令の2バイト目はオペコードの一部なのでオペランドには含めません。
    peek=True の場合はバスアクティビティを記録しません（逆アセンブラ用）。
    """
    read = bus.peek if peek else bus.read
    first_operand = 2 if descriptor.prefix_cb else 1
    operand_bytes = [read((pc + i) & 0xFFFF) for i in range(first_operand, descriptor.length)]
    return Operation(
        opcode_hex=descriptor.opcode_hex,
        mnemonic=descriptor.name,
        address=pc,
        operand_bytes=operand_bytes,
        cycle_count=descriptor.cycles,
        length=descriptor.length,
    )

# @intent:responsibility 実行関数が存在するオペコードかどうかを返します。
def is_executable(opcode: int) -> bool:
    return opcode in EXECUTE_MAP

# @intent:responsibility デコードされた命令を実行し、CPUの状態を変更します。
# @intent:post-condition 条件付き分岐命令は成立したかどうかを返し、それ以外はNoneを返します。
def execute_instruction(operation: Operation, state: Sm83CpuState, bus: Bus) -> Optional[bool]:
    executor = EXECUTE_MAP[operation.opcode]
    return executor(state, bus, operation)

# @intent:responsibility 命令テーブルの命令長が実行関数の読み取るオペランドと一致することを検証します。
# @intent:post-condition 不一致があればOpcodeTableErrorを送出します。実行関数のない記述子は検証しません。
def validate_table(table: OpcodeTable) -> None:
    for descriptor in table:
        expected = LENGTH_MAP.get(descriptor.opcode)
        if expected is not None and descriptor.length != expected:
            raise OpcodeTableError(
                f"Opcode {descriptor.opcode_hex} ({descriptor.name}): "
                f"length {descriptor.length} does not match expected {expected}."
            )
