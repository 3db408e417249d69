# gblite/transport/bus.py
"""
Transport Layer (メモリバス)

このモジュールは、16bitアドレス空間全体を1枚のバイト列として保持し、
CPU・PPUなどのクライアントからの読み書きを仲介する責務を負います。
全てのアクセスはクライアント名付きで記録され、将来のアクセス制御に利用できます。
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, NamedTuple

ADDRESS_SPACE_SIZE = 0x10000

# @intent:responsibility バスにアクセスする主体を区別します。
class BusClient(Enum):
    CPU = "CPU"
    PPU = "PPU"

# @intent:responsibility バスアクセスを記録するためのタイプを定義します。
class BusAccessType(Enum):
    READ = "READ"
    WRITE = "WRITE"

# @intent:responsibility 個々のバスアクセス操作を記録します。
@dataclass(frozen=True) # 不変データ構造
class BusAccess:
    """
    バス上で行われた単一のアクセス（読み込みまたは書き込み）を記録するデータクラス。
    """
    address: int
    data: int # 8bit value
    access_type: BusAccessType
    client: BusClient = BusClient.CPU

# @intent:data_structure アドレス空間上の名前付き領域。
class MemoryRegion(NamedTuple):
    name: str
    start: int
    end: int # 終端アドレス（含む）

    @property
    def size(self) -> int:
        return self.end - self.start + 1

    def contains(self, address: int) -> bool:
        return self.start <= address <= self.end

# @intent:constant Game Boy のメモリマップ。
ROM = MemoryRegion("ROM", 0x0000, 0x7FFF)
VRAM = MemoryRegion("VRAM", 0x8000, 0x9FFF)
EXTERNAL_RAM = MemoryRegion("EXTERNAL_RAM", 0xA000, 0xBFFF)
WORK_RAM = MemoryRegion("WORK_RAM", 0xC000, 0xDFFF)
ECHO_RAM = MemoryRegion("ECHO_RAM", 0xE000, 0xFDFF)
OAM = MemoryRegion("OAM", 0xFE00, 0xFE9F)
UNUSABLE = MemoryRegion("UNUSABLE", 0xFEA0, 0xFEFF)
IO_REGISTERS = MemoryRegion("IO_REGISTERS", 0xFF00, 0xFF7F)
HIGH_RAM = MemoryRegion("HIGH_RAM", 0xFF80, 0xFFFE)
INTERRUPT_ENABLE = MemoryRegion("INTERRUPT_ENABLE", 0xFFFF, 0xFFFF)

MEMORY_MAP = (
    ROM, VRAM, EXTERNAL_RAM, WORK_RAM, ECHO_RAM, OAM,
    UNUSABLE, IO_REGISTERS, HIGH_RAM, INTERRUPT_ENABLE,
)

# 高速I/Oページ (LDH) の基底アドレス
IO_PAGE_BASE = 0xFF00

# @intent:responsibility アドレス空間全体を保持し、クライアント単位の読み書きを提供するメモリバス。
# @intent:rationale バスの全てのアクセスを記録し、Snapshotに含めることでシステムの観測可能性を高めます。
class Bus:
    """
    0x0000-0xFFFFの全域を1つのバイト列で表すメモリバス。
    CPUとPPUはこの1つのインスタンスを共有します。
    """
    # @intent:responsibility ゼロ埋めのメモリイメージとアクティビティログを初期化します。
    def __init__(self, size: int = ADDRESS_SPACE_SIZE):
        if not isinstance(size, int) or size <= 0 or size > ADDRESS_SPACE_SIZE:
            raise ValueError("Bus size must be a positive integer no larger than 0x10000.")
        self._memory = bytearray(size)
        self._size = size
        self._bus_activity_log: List[BusAccess] = []

    def get_size(self) -> int:
        return self._size

    def _check_address(self, address: int) -> None:
        if not 0 <= address < self._size:
            raise IndexError(f"Address {address:#06x} out of bounds for bus of size {self._size:#x}.")

    # @intent:responsibility バスアクセスをログに記録します。
    def _log_access(self, address: int, data: int, access_type: BusAccessType, client: BusClient) -> None:
        self._bus_activity_log.append(
            BusAccess(address=address, data=data, access_type=access_type, client=client)
        )

    # @intent:responsibility 記録されたバスアクティビティログを取得し、クリアします。
    def get_and_clear_activity_log(self) -> List[BusAccess]:
        """
        現在のバスアクティビティログを返し、内部ログをクリアします。
        """
        log = self._bus_activity_log
        self._bus_activity_log = []
        return log

    # @intent:responsibility 指定されたアドレスから8bitのデータを読み出します。
    # @intent:pre-condition アドレスは0以上バスサイズ未満である必要があります。
    def read(self, address: int, client: BusClient = BusClient.CPU) -> int:
        """
        指定されたアドレスから8bitのデータを読み出します。
        アクセスはクライアント名付きでログに記録されます。
        """
        self._check_address(address)
        data = self._memory[address]
        self._log_access(address, data, BusAccessType.READ, client)
        return data

    # @intent:responsibility 指定されたアドレスに8bitのデータを書き込みます。
    # @intent:pre-condition データは8bit値である必要があります。
    def write(self, address: int, data: int, client: BusClient = BusClient.CPU) -> None:
        self._check_address(address)
        if not 0 <= data <= 0xFF:
            raise ValueError(f"Data {data} is not an 8-bit value.")
        self._memory[address] = data
        self._log_access(address, data, BusAccessType.WRITE, client)

    # @intent:responsibility リトルエンディアンで16bit値を読み出します。
    # @intent:rationale 上位バイトのアドレスは16bitで折り返します (0xFFFF の次は 0x0000)。
    def read16(self, address: int, client: BusClient = BusClient.CPU) -> int:
        low = self.read(address, client)
        high = self.read((address + 1) & 0xFFFF, client)
        return (high << 8) | low

    # @intent:responsibility リトルエンディアンで16bit値を書き込みます（下位バイトが先）。
    def write16(self, address: int, value: int, client: BusClient = BusClient.CPU) -> None:
        self.write(address, value & 0xFF, client)
        self.write((address + 1) & 0xFFFF, (value >> 8) & 0xFF, client)

    # @intent:responsibility ログを記録せずに指定されたアドレスからデータを読み出します。
    def peek(self, address: int) -> int:
        """
        指定されたアドレスから8bitのデータを読み出します（ログ記録なし）。
        逆アセンブラやトレース出力用。
        """
        self._check_address(address)
        return self._memory[address]

    # @intent:responsibility 連続した領域をログなしで取り出します。
    def peek_range(self, start: int, length: int) -> bytes:
        if length < 0:
            raise ValueError("Length must not be negative.")
        if length:
            self._check_address(start)
            self._check_address(start + length - 1)
        return bytes(self._memory[start:start + length])

    # @intent:responsibility プログラムイメージを一括でメモリに配置するバックドアです。
    # @intent:rationale ローダーからの初期化書き込みはアクティビティログに残しません。
    def load(self, data: bytes, start: int = 0x0000) -> None:
        """
        バイト列を start から順に書き込みます。通常のバスアクセス経由ではありません。
        """
        if not data:
            return
        self._check_address(start)
        self._check_address(start + len(data) - 1)
        self._memory[start:start + len(data)] = data
