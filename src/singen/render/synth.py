"""正弦波合成、整数量化与声道交织的核心实现。"""  # 模块说明。
from __future__ import annotations

import math  # 正弦、取模与最大公约数。
import struct  # 小端整数打包。
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

from singen.utils.errors import InvalidParameterError

# 16 kHz 常用于语音与电话，44.1 kHz 为 CD 标准，48 kHz 用于专业音视频。
SUPPORTED_SAMPLE_RATES = (16_000, 44_100, 48_000)
# USB 全速端点的单包字节数。
PACKET_SIZE = 64
TWO_PI = 2.0 * math.pi  # 一个完整周期的弧度。


class SampleWidth(Enum):
    """音频采样宽度，枚举值为每个采样占用的字节数。"""

    BITS_16 = 2
    BITS_24 = 3
    BITS_32 = 4

    @classmethod
    def from_bits(cls, bits: int | str) -> "SampleWidth":
        """将 16/24/32 解析为采样宽度，其他取值抛出 InvalidParameterError。"""
        try:
            return _WIDTH_BY_BITS[int(bits)]
        except (KeyError, TypeError, ValueError):
            raise InvalidParameterError(
                f"Unsupported bit depth {bits!r}. Must be 16, 24, or 32"
            ) from None

    @property
    def bytes_per_sample(self) -> int:
        return self.value  # 枚举值即字节数。

    @property
    def bits(self) -> int:
        return self.value * 8  # 每字节 8 位。

    @property
    def full_scale(self) -> int:
        """该位深下可表示的最大正整数幅值（32767 / 8388607 / 2147483647）。"""
        return (1 << (self.bits - 1)) - 1

    def pack(self, value: int) -> bytes:
        """将有符号整数编码为小端字节，24 位取 int32 的低三字节即完成符号扩展截断。"""
        return struct.pack("<i", value)[: self.value]


_WIDTH_BY_BITS = {width.bits: width for width in SampleWidth}  # 位深到采样宽度的反查表。
SUPPORTED_BITS = tuple(sorted(_WIDTH_BY_BITS))


def _is_number(value: object) -> bool:
    """bool 是 int 的子类，需单独排除。"""  # 函数说明。
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class WaveformSpec:
    """描述一次渲染所需的全部波形参数，构造时即完成校验。"""

    frequency: float
    sample_rate: int
    channels: int = 2
    width: SampleWidth = SampleWidth.BITS_16
    duration_ms: float = 1.0
    packet_mode: bool = False

    def __post_init__(self) -> None:
        if not _is_number(self.frequency) or not math.isfinite(self.frequency) or self.frequency <= 0:
            raise InvalidParameterError(f"Frequency must be a positive number of Hz, got {self.frequency!r}")
        if not isinstance(self.sample_rate, int) or isinstance(self.sample_rate, bool) or self.sample_rate <= 0:
            raise InvalidParameterError(f"Sample rate must be a positive integer, got {self.sample_rate!r}")
        if not isinstance(self.channels, int) or isinstance(self.channels, bool) or self.channels not in (1, 2):
            raise InvalidParameterError(f"Channel count must be 1 or 2, got {self.channels!r}")
        if not isinstance(self.width, SampleWidth):
            raise InvalidParameterError(f"Sample width must be a SampleWidth, got {self.width!r}")
        if not _is_number(self.duration_ms) or not math.isfinite(self.duration_ms) or self.duration_ms < 0:
            raise InvalidParameterError(f"Duration must be a non-negative number of ms, got {self.duration_ms!r}")

    @classmethod
    def from_values(
        cls,
        frequency: float,
        sample_rate: int,
        channels: int = 2,
        bits: int = 16,
        duration_ms: float = 1.0,
        packet_mode: bool = False,
    ) -> "WaveformSpec":
        """以位深整数而非 SampleWidth 构造规格，供配置层与测试使用。"""
        return cls(
            frequency=frequency,
            sample_rate=sample_rate,
            channels=channels,
            width=SampleWidth.from_bits(bits),
            duration_ms=duration_ms,
            packet_mode=bool(packet_mode),
        )

    @property
    def is_standard_rate(self) -> bool:
        return self.sample_rate in SUPPORTED_SAMPLE_RATES  # 非标准采样率仍可渲染。

    @property
    def nyquist(self) -> float:
        return self.sample_rate / 2.0  # 可无混叠表示的最高频率。


@dataclass(frozen=True)
class BufferLayout:
    """缓冲区尺寸规划结果，不包含实际采样数据。"""

    requested_frames: int
    frames: int
    bytes_per_sample: int
    bytes_per_frame: int

    @property
    def padding_frames(self) -> int:
        return self.frames - self.requested_frames

    @property
    def total_bytes(self) -> int:
        return self.frames * self.bytes_per_frame

    @property
    def packets(self) -> int:
        return -(-self.total_bytes // PACKET_SIZE)


def requested_frame_count(sample_rate: int, duration_ms: float) -> int:
    """按 round(sample_rate × duration_ms / 1000) 计算帧数，.5 向远离零方向取整。"""
    return int(math.floor(sample_rate * duration_ms / 1000.0 + 0.5))


def plan_buffer(spec: WaveformSpec) -> BufferLayout:
    """计算帧数与字节数；包模式下向上补齐帧数使总字节数为 64 的整数倍。"""
    requested = requested_frame_count(spec.sample_rate, spec.duration_ms)  # 未补齐前的帧数。
    bytes_per_frame = spec.width.bytes_per_sample * spec.channels  # 一帧包含所有声道。
    frames = requested
    if spec.packet_mode:
        # 满足 frames × bytes_per_frame ≡ 0 (mod 64) 的最小帧步长。
        step = PACKET_SIZE // math.gcd(PACKET_SIZE, bytes_per_frame)
        frames = -(-requested // step) * step
    return BufferLayout(
        requested_frames=requested,
        frames=frames,
        bytes_per_sample=spec.width.bytes_per_sample,
        bytes_per_frame=bytes_per_frame,
    )


@dataclass(frozen=True)
class RenderedWaveform:
    """渲染结果：按帧内声道交织的整数幅值序列及其小端字节缓冲。"""

    spec: WaveformSpec
    layout: BufferLayout
    samples: List[int]
    data: bytes

    @property
    def frames(self) -> int:
        return self.layout.frames

    def frame(self, index: int) -> Tuple[int, ...]:
        """返回第 index 帧内各声道的幅值。"""
        start = index * self.spec.channels
        return tuple(self.samples[start : start + self.spec.channels])


def quantize(phase: float, width: SampleWidth) -> int:
    """将相位上的正弦值缩放到满幅整数并向零截断。"""
    return int(math.sin(phase) * width.full_scale)


def frame_phase(frequency: float, sample_rate: int, index: int) -> float:
    """计算第 index 帧的相位，频率与乘积各对采样率取模一次。"""
    # 先约简频率，frequency × index 在极大频率下不会溢出为 inf。
    reduced = math.fmod(frequency, sample_rate)
    return TWO_PI * math.fmod(reduced * index, sample_rate) / sample_rate


def render_waveform(spec: WaveformSpec) -> RenderedWaveform:
    """合成单声道正弦源，量化后复制到所有声道并编码为字节缓冲。"""
    layout = plan_buffer(spec)
    samples: List[int] = []
    data = bytearray()
    for index in range(layout.frames):
        value = quantize(frame_phase(spec.frequency, spec.sample_rate, index), spec.width)
        encoded = spec.width.pack(value)  # 每帧只编码一次。
        for _ in range(spec.channels):  # 单声道源复制到每个声道。
            samples.append(value)
            data += encoded
    return RenderedWaveform(spec=spec, layout=layout, samples=samples, data=bytes(data))
