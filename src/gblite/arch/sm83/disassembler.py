"""
SM83逆アセンブラモジュール。

メモリ上のバイナリデータを命令テーブルに従って解析し、ニーモニック形式に変換します。
"""
from typing import List, Tuple

from gblite.transport.bus import Bus
from gblite.arch.sm83.opcodes import OpcodeTable, CB_PREFIX, extended_opcode
from gblite.arch.sm83.instructions import decode_operation

# @intent:responsibility 指定されたメモリ範囲のバイナリデータを解析し、アドレスとニーモニックのリストを返します。
def disassemble(bus: Bus, table: OpcodeTable, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
    """
    メモリ上のデータを読み取り、(アドレス, 16進ダンプ, ニーモニック) のタプルのリストを返します。
    テーブルにないバイトは "DB $xx" として1バイトずつ進みます。
    """
    result = []
    current_addr = start_addr
    end_addr = start_addr + length

    while current_addr < end_addr and current_addr <= 0xFFFF:
        # ログを汚さないためにpeekを使用
        opcode = bus.peek(current_addr)
        if opcode == CB_PREFIX and current_addr < 0xFFFF:
            opcode = extended_opcode(bus.peek(current_addr + 1))
        descriptor = table.get(opcode)

        if descriptor is None:
            raw = bus.peek(current_addr)
            result.append((current_addr, f"{raw:02X}", f"DB ${raw:02X}"))
            current_addr += 1
            continue

        operation = decode_operation(descriptor, bus, current_addr, peek=True)
        raw_bytes = [bus.peek((current_addr + i) & 0xFFFF) for i in range(descriptor.length)]
        hex_dump = " ".join(f"{b:02X}" for b in raw_bytes)

        mnemonic = operation.mnemonic
        if operation.operand_bytes:
            mnemonic += " ; " + " ".join(f"${b:02X}" for b in operation.operand_bytes)

        result.append((current_addr, hex_dump, mnemonic))
        current_addr += descriptor.length

    return result
