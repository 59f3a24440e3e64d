"""原样输出字节缓冲。"""  # 模块说明。
from singen.render.formatters.base import IFormatter
from singen.render.synth import RenderedWaveform


class RawFormatter(IFormatter):
    name = "raw"  # 注册表中的格式名称。
    binary = True  # 直接写出 bytes，不做文本编码。

    def render(self, waveform: RenderedWaveform) -> bytes:
        return bytes(waveform.data)
