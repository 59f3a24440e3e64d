"""输出格式注册表，用于根据名称返回具体实现。"""
from typing import Dict, Type

from singen.render.formatters.arrays import CArrayFormatter, RustArrayFormatter
from singen.render.formatters.base import IFormatter
from singen.render.formatters.hexdump import HexFormatter
from singen.render.formatters.raw import RawFormatter
from singen.render.formatters.wav import WavFormatter
from singen.utils.errors import InvalidParameterError

# 新增格式时在此注册。
FORMATTERS: Dict[str, Type[IFormatter]] = {
    "hex": HexFormatter,
    "carray": CArrayFormatter,
    "rustarray": RustArrayFormatter,
    "raw": RawFormatter,
    "wav": WavFormatter,
}
FORMAT_ALIASES = {
    "c": "carray",
    "rust": "rustarray",
    "bytes": "raw",
    "pcm": "wav",
}
# info 仅输出分析信息，不经过格式化器。
INFO_FORMAT = "info"
OUTPUT_FORMATS = (*FORMATTERS, INFO_FORMAT)


def resolve_format_name(name: str) -> str:
    """统一大小写并展开别名，未知名称原样返回交由校验处理。"""
    normalized = name.strip().lower()
    return FORMAT_ALIASES.get(normalized, normalized)


def create_formatter(name: str, **kwargs) -> IFormatter:
    """根据格式名称返回对应的格式化器实例。"""
    key = resolve_format_name(name)
    if key not in FORMATTERS:
        raise InvalidParameterError(
            f"Unsupported output format '{name}'. Available options: {', '.join(OUTPUT_FORMATS)}"
        )
    return FORMATTERS[key](**kwargs)


__all__ = [
    "FORMATTERS",
    "FORMAT_ALIASES",
    "INFO_FORMAT",
    "OUTPUT_FORMATS",
    "IFormatter",
    "create_formatter",
    "resolve_format_name",
]
