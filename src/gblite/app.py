# src/gblite/app.py
"""
コマンドラインのエントリポイント。
引数と設定ファイルから構成を組み立て、エミュレーションを実行します。
"""
import argparse
import logging
import sys
from typing import List, Optional

from gblite.arch.sm83.opcodes import OpcodeTableError
from gblite.config.loader import ConfigLoader, ConfigError
from gblite.config.models import EmulatorConfig
from gblite.config.builder import SystemBuilder
from gblite.emulator.driver import StopReason

logger = logging.getLogger("gblite")

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gblite",
        description="Game Boy (SM83) CPU and PPU timing emulator"
    )
    parser.add_argument("rom", nargs="?", help="Path to the program image (raw DMG binary)")
    parser.add_argument("--opcodes", help="Opcode table file (YAML or JSON)")
    parser.add_argument("--config", help="System configuration file (YAML)")
    parser.add_argument("--headless", action="store_true", default=None,
                        help="Run without opening a window")
    parser.add_argument("--max-steps", type=int, help="Stop after N instructions")
    parser.add_argument("--frame-limit", type=int, help="Close the headless display after N frames")
    parser.add_argument("--scale", type=int, help="Window scale factor")
    parser.add_argument("--trace", action="store_true", default=None,
                        help="Log every executed instruction")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level")
    return parser

# @intent:responsibility コマンドライン引数で設定ファイルの値を上書きします。
def apply_overrides(config: EmulatorConfig, args: argparse.Namespace) -> EmulatorConfig:
    if args.rom is not None:
        config.rom = args.rom
    if args.opcodes is not None:
        config.opcode_table = args.opcodes
    if args.headless is not None:
        config.display.headless = args.headless
    if args.frame_limit is not None:
        config.display.frame_limit = args.frame_limit
    if args.scale is not None:
        config.display.scale = args.scale
    if args.max_steps is not None:
        config.max_steps = args.max_steps
    if args.trace is not None:
        config.trace = args.trace
    return config

def configure_logging(level: str, trace: bool) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        stream=sys.stderr,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    if trace:
        logging.getLogger("gblite.trace").setLevel(logging.DEBUG)

# @intent:responsibility アプリケーションを起動し、終了コードを返します。
def main(argv: Optional[List[str]] = None) -> int:
    """
    正常終了（HALT、表示面のクローズ、命令数上限）は0、フォールトや起動エラーは1を返します。
    """
    args = build_parser().parse_args(argv)

    try:
        config = ConfigLoader().load_from_file(args.config) if args.config else EmulatorConfig()
    except ConfigError as e:
        configure_logging(args.log_level, False)
        logger.error("%s", e)
        return 1

    config = apply_overrides(config, args)
    configure_logging(args.log_level, config.trace)

    if not config.rom:
        logger.error("Error: Need to define a DMG file!")
        return 1

    try:
        driver = SystemBuilder().build_system(config)
    except (OpcodeTableError, ConfigError) as e:
        logger.error("%s", e)
        return 1

    try:
        reason = driver.run(config.max_steps)
    finally:
        driver.ppu.display.close()

    return 1 if reason == StopReason.FAULTED else 0

if __name__ == '__main__':
    sys.exit(main())
