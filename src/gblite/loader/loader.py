# gblite/loader/loader.py
"""
プログラムイメージ（ROM）ローダーモジュール。
生のバイナリファイルを読み込み、アドレス 0x0000 からバスに配置します。
"""
import logging

from gblite.transport.bus import Bus, ROM

logger = logging.getLogger(__name__)

class RomLoader:
    """
    DMG形式の生バイナリを読み込むローダー。
    バンク切り替えには対応しないため、ROM領域（32KiB）を超える部分は切り捨てます。
    """
    # @intent:responsibility ファイルを読み込み、ROM領域に配置した内容を返します。
    # @intent:post-condition 読み込めない場合は警告を出し、空のイメージとして扱います。
    def load_binary(self, file_path: str, bus: Bus) -> bytes:
        try:
            with open(file_path, 'rb') as f:
                data = f.read()
        except OSError as e:
            logger.warning("Could not read program image %s: %s", file_path, e)
            return b""

        if len(data) > ROM.size:
            logger.warning(
                "Program image %s is %d bytes, truncating to %d bytes",
                file_path, len(data), ROM.size
            )
            data = data[:ROM.size]

        bus.load(data, ROM.start)
        logger.info("Loaded %d bytes from %s", len(data), file_path)
        return data
