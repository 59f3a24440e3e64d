"""生成可直接粘贴进 C 或 Rust 源码的数组声明。"""
from __future__ import annotations

from abc import abstractmethod
from typing import List

from singen.render.formatters.base import IFormatter, byte_rows, format_number
from singen.render.synth import RenderedWaveform, WaveformSpec


def array_identifier(spec: WaveformSpec) -> str:
    """根据波形参数生成大写标识符，例如 SINE_440HZ_1MS_16BIT_2CH。"""
    # 标识符以频率区分音调，小数点换成下划线以保持合法的 C/Rust 名称。
    frequency = format_number(spec.frequency).replace(".", "_")
    duration = format_number(spec.duration_ms).replace(".", "_")
    return f"SINE_{frequency}HZ_{duration}MS_{spec.width.bits}BIT_{spec.channels}CH"


def comment_header(waveform: RenderedWaveform) -> List[str]:
    """两种语言共用的 // 注释头。"""
    spec = waveform.spec
    plural = "s" if spec.channels > 1 else ""
    return [
        f"// Sine wave: {format_number(spec.frequency)} Hz, {format_number(spec.duration_ms)} ms, "
        f"{spec.width.bits}-bit, {spec.channels} channel{plural}",
        f"// Sample rate: {spec.sample_rate} Hz",
        f"// Total bytes: {len(waveform.data)}",
    ]


class _ArrayFormatter(IFormatter):
    """数组声明的公共骨架，子类只提供声明首尾。"""

    indent = "    "  # 数组元素行缩进四个空格。

    @abstractmethod
    def open_declaration(self, name: str, length: int) -> str:
        """返回声明首行，包含标识符与数组长度。"""  # 抽象方法说明。
        raise NotImplementedError

    @abstractmethod
    def close_declaration(self) -> str:
        """返回声明结尾行。"""  # 抽象方法说明。
        raise NotImplementedError

    def render(self, waveform: RenderedWaveform) -> str:
        lines = comment_header(waveform)  # 注释头位于声明之前。
        lines.append(self.open_declaration(array_identifier(waveform.spec), len(waveform.data)))
        rows = byte_rows(waveform.data, self.bytes_per_line)
        # 除最后一行外每行以逗号结尾。
        lines.extend(f"{self.indent}{row}," if index < len(rows) - 1 else f"{self.indent}{row}" for index, row in enumerate(rows))
        lines.append(self.close_declaration())
        return "\n".join(lines) + "\n"


class CArrayFormatter(_ArrayFormatter):
    """const uint8_t NAME[N] = { ... };"""

    name = "carray"

    def open_declaration(self, name: str, length: int) -> str:
        return f"const uint8_t {name}[{length}] = {{"

    def close_declaration(self) -> str:
        return "};"


class RustArrayFormatter(_ArrayFormatter):
    """pub const NAME: [u8; N] = [ ... ];"""

    name = "rustarray"

    def open_declaration(self, name: str, length: int) -> str:
        return f"pub const {name}: [u8; {length}] = ["

    def close_declaration(self) -> str:
        return "];"
