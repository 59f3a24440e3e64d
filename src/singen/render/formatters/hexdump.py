"""十六进制字节列表输出。"""  # 模块说明。
from singen.render.formatters.base import IFormatter, byte_rows
from singen.render.synth import RenderedWaveform


class HexFormatter(IFormatter):
    """输出 [0x00, 0x01, ...] 形式的方括号列表，续行以单个空格缩进。"""  # 类说明。

    name = "hex"  # 注册表中的格式名称。

    def render(self, waveform: RenderedWaveform) -> str:
        rows = byte_rows(waveform.data, self.bytes_per_line)  # 按换行宽度切分字节。
        # 换行处同样保留逗号，整段输出是一个合法的 Python 列表字面量。
        return "[" + ",\n ".join(rows) + "]\n"
