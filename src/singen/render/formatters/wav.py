"""将字节缓冲封装为 RIFF/WAVE PCM 容器。"""
# 导入 io 以在内存中构造 WAV 文件。
import io
# 导入 wave 以写出标准 44 字节 PCM 头（格式标签 1）。
import wave

from singen.render.formatters.base import IFormatter
from singen.render.synth import RenderedWaveform


class WavFormatter(IFormatter):
    """写出声道数、采样率、位深与数据块，可由任意标准 WAV 读取器解码。"""

    name = "wav"
    binary = True

    def render(self, waveform: RenderedWaveform) -> bytes:
        spec = waveform.spec
        buffer = io.BytesIO()
        with wave.open(buffer, "wb") as wf:
            wf.setnchannels(spec.channels)
            wf.setsampwidth(spec.width.bytes_per_sample)
            wf.setframerate(spec.sample_rate)
            # 帧数在写出数据前声明，头部无需回填。
            wf.setnframes(waveform.frames)
            wf.writeframes(waveform.data)
        return buffer.getvalue()
