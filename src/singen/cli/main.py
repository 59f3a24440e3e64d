"""命令行入口，负责解析参数、分层加载配置并调用渲染管线。"""  # 模块说明。
from __future__ import annotations

import argparse  # 导入 argparse 以解析命令行参数。
import sys

from singen.pipeline import run
from singen.render.formatters import FORMAT_ALIASES, OUTPUT_FORMATS
from singen.render.synth import SUPPORTED_SAMPLE_RATES
from singen.utils.config import (
    ConfigError,
    load_and_merge_config,
    parse_cli_set_items,
    render_effective_config,
    save_config,
)
from singen.utils.errors import exit_code_for
from singen.utils.logging import get_logger

EXAMPLES = """\
Examples:
  singen -f 1000 -r 48000 -b 16 -d 10 -o carray
  singen --frequency 440 --rate 44100 --channels 1 --bits 24
  singen -r 16000 -d 1 -o rustarray -p
  singen --profile usb-audio -o wav --out-file tone.wav
"""


def parse_bool(value: str) -> bool:
    """将传入值解析为布尔类型，仅接受 true/false。"""  # 函数说明。
    if isinstance(value, bool):
        return value
    normalized = value.lower()
    if normalized == "true":
        return True
    if normalized == "false":
        return False
    raise argparse.ArgumentTypeError("Expected 'true' or 'false'")


def build_parser() -> argparse.ArgumentParser:
    """创建参数解析器并声明所有可用选项。"""  # 函数说明。
    format_choices = sorted({*OUTPUT_FORMATS, *FORMAT_ALIASES})
    parser = argparse.ArgumentParser(
        prog="singen",
        description="生成量化正弦波缓冲区并输出为十六进制、C/Rust 数组、原始字节或 WAV 容器",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-f", "--frequency", type=float, default=None, help="正弦波频率 Hz（默认 440.0）")
    parser.add_argument(
        "-r",
        "--rate",
        type=int,
        default=None,
        help="采样率 Hz（默认 16000，标准值: %s）" % ", ".join(str(rate) for rate in SUPPORTED_SAMPLE_RATES),
    )
    parser.add_argument("-c", "--channels", type=int, default=None, help="声道数，1=单声道 2=立体声（默认 2）")
    parser.add_argument("-b", "--bits", type=int, default=None, help="位深: 16、24 或 32（默认 16）")
    parser.add_argument("-d", "--duration", type=float, default=None, help="时长，单位毫秒（默认 1.0）")
    parser.add_argument(
        "-o",
        "--output",
        dest="output_format",
        type=str.lower,
        choices=format_choices,
        default=None,
        help="输出格式: hex（默认）/carray/rustarray/raw/wav/info",
    )
    parser.add_argument(
        "-p",
        "--packet",
        type=parse_bool,
        nargs="?",
        const=True,
        default=None,
        help="补齐帧数使总字节数为 64 的整数倍 (可省略值以启用 true/false)",
    )
    parser.add_argument("-a", "--analyze", action="store_true", help="仅分析缓冲区，不生成数据")
    parser.add_argument("--out-file", default=None, help="将输出原子写入该文件而非标准输出")
    parser.add_argument("--report-file", default=None, help="将 JSON 分析报告写入该文件")
    parser.add_argument("--header", type=parse_bool, default=None, help="文本格式前是否附带缓冲区信息 (true/false)")
    parser.add_argument("--bytes-per-line", type=int, default=None, help="十六进制与数组输出每行字节数")
    parser.add_argument("--config", default=None, help="可选用户配置 YAML 路径，默认查找 config/user.yaml")
    parser.add_argument("--profile", dest="profile_name", default=None, help="选择预设 profile 名称")
    parser.add_argument(
        "--set",
        dest="set_items",
        action="append",
        default=[],
        help="通过 KEY=VALUE 覆盖任意配置，可重复使用",
    )
    parser.add_argument("--print-config", action="store_true", help="打印最终配置快照后退出")
    parser.add_argument("--save-config", default=None, help="保存最终配置快照到指定路径后退出")
    parser.add_argument(
        "--log-format",
        choices=["human", "jsonl"],
        default=None,
        help="日志格式，human 适合调试，jsonl 适合机器消费",
    )
    parser.add_argument("--log-level", default=None, help="日志等级（DEBUG/INFO/WARNING/ERROR）")
    parser.add_argument("--log-file", default=None, help="可选日志文件路径，追加写入")
    parser.add_argument("--quiet", type=parse_bool, default=None, help="静默模式，标准错误不输出日志 (true/false)")
    return parser


def _build_cli_overrides(args: argparse.Namespace) -> dict:
    """根据解析结果构造 CLI 覆盖字典，仅包含显式传入的键。"""  # 工具函数说明。
    overrides: dict[str, object] = {}
    waveform: dict[str, object] = {}
    if args.frequency is not None:
        waveform["frequency"] = args.frequency
    if args.rate is not None:
        waveform["sample_rate"] = args.rate
    if args.channels is not None:
        waveform["channels"] = args.channels
    if args.bits is not None:
        waveform["bits"] = args.bits
    if args.duration is not None:
        waveform["duration_ms"] = args.duration
    if args.packet is not None:
        waveform["packet_mode"] = args.packet
    if waveform:
        overrides["waveform"] = waveform
    output: dict[str, object] = {}
    if args.output_format is not None:
        output["format"] = args.output_format
    if args.analyze:  # 分析模式强制 info 输出。
        output["format"] = "info"
    if args.out_file is not None:
        output["out_file"] = args.out_file
    if args.report_file is not None:
        output["report_file"] = args.report_file
    if args.header is not None:
        output["header"] = args.header
    if args.bytes_per_line is not None:
        output["bytes_per_line"] = args.bytes_per_line
    if output:
        overrides["output"] = output
    if args.log_format is not None:
        overrides["log_format"] = args.log_format
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    if args.log_file is not None:
        overrides["log_file"] = args.log_file
    if args.quiet is not None:
        overrides["quiet"] = args.quiet
    return overrides


def main(argv: list[str] | None = None) -> int:
    """解析参数并调用管线，返回退出状态码。"""  # 函数说明。
    parser = build_parser()
    args = parser.parse_args(argv)
    # 配置尚未加载时使用引导日志器报告错误。
    bootstrap = get_logger(level="WARNING")
    try:
        bundle = load_and_merge_config(
            cli_overrides=_build_cli_overrides(args),
            cli_set_overrides=parse_cli_set_items(args.set_items) if args.set_items else {},
            config_path=args.config,
            profile_name=args.profile_name,
        )
    except ConfigError as exc:
        bootstrap.error("invalid configuration", error=str(exc))
        return exit_code_for(exc)
    if args.print_config or args.save_config:
        if args.print_config:
            sys.stdout.write(render_effective_config(bundle, include_sources=True))
            sys.stdout.flush()
        if args.save_config:
            try:
                save_config(bundle, args.save_config)
            except OSError as exc:
                bootstrap.error("failed to save config snapshot", path=args.save_config, error=str(exc))
                return exit_code_for(exc)
        return 0
    config = bundle.config
    try:
        logger = get_logger(
            format=config.get("log_format", "human"),
            level=config.get("log_level", "WARNING"),
            log_file=config.get("log_file"),
            quiet=bool(config.get("quiet", False)),
        )
    except OSError as exc:  # 日志文件所在目录无法创建。
        bootstrap.error("cannot open log file", log_file=config.get("log_file"), error=str(exc))
        return exit_code_for(exc)
    logger.debug("effective profile", profile=bundle.profile or "default")
    try:
        run(config=config, logger=logger)
        return 0
    except Exception as exc:  # noqa: BLE001
        code = exit_code_for(exc)
        if code == 2:
            logger.error("invalid configuration", error=str(exc))
        else:
            logger.exception("fatal render error", exc=exc)
        return code


if __name__ == "__main__":  # 允许脚本直接运行。
    sys.exit(main())
