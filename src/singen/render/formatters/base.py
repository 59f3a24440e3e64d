"""定义所有输出格式共同遵循的抽象接口与字节列表工具。"""
from __future__ import annotations

# 导入 abc 模块中的 ABC 与 abstractmethod，用于声明抽象基类。
from abc import ABC, abstractmethod
from typing import List, Union

from singen.render.synth import RenderedWaveform
from singen.utils.errors import InvalidParameterError

DEFAULT_BYTES_PER_LINE = 16  # 十六进制与数组输出的默认换行宽度。


def format_number(value: float) -> str:
    """整数值去掉小数部分输出，其余保留原始小数表示。"""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def byte_rows(data: bytes, bytes_per_line: int) -> List[str]:
    """将字节缓冲切分为若干行，每行为逗号分隔的 0xNN 列表。"""
    return [
        ", ".join(f"0x{byte:02X}" for byte in data[offset : offset + bytes_per_line])
        for offset in range(0, len(data), bytes_per_line)
    ]


class IFormatter(ABC):
    """约定构造参数与渲染方法的输出格式基类。"""

    name: str = ""
    # 二进制格式直接写出 bytes，文本格式写出 str。
    binary: bool = False

    def __init__(self, bytes_per_line: int = DEFAULT_BYTES_PER_LINE) -> None:
        """保存换行宽度，未知的关键字参数由 Python 直接拒绝。"""
        if isinstance(bytes_per_line, bool) or not isinstance(bytes_per_line, int) or bytes_per_line < 1:
            raise InvalidParameterError(f"bytes_per_line must be a positive integer, got {bytes_per_line!r}")
        self.bytes_per_line = bytes_per_line  # 每行输出的字节数。

    @abstractmethod
    def render(self, waveform: RenderedWaveform) -> Union[str, bytes]:
        """将渲染结果序列化为目标格式。"""
        raise NotImplementedError
